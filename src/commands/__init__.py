"""
Command-line front end.
"""

from .main import FileCheckerCommands, build_parser, main

__all__ = ["FileCheckerCommands", "build_parser", "main"]
