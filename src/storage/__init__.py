"""
Logical URI resolution and physical file moves.
"""

from .filesystem import ExistsPolicy, FileSystem
from .resolver import PathResolver, StreamWrapperResolver

__all__ = ["ExistsPolicy", "FileSystem", "PathResolver", "StreamWrapperResolver"]
