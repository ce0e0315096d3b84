"""
Database package for the file catalog and persisted checker state.
"""

from .manager import (
    STATUS_MISSING,
    STATUS_PRESENT,
    STATUS_UNKNOWN,
    DatabaseManager,
    FileRecord,
)
from .schema import create_databases

__all__ = [
    "DatabaseManager",
    "FileRecord",
    "STATUS_MISSING",
    "STATUS_PRESENT",
    "STATUS_UNKNOWN",
    "create_databases",
]
