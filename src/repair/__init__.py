"""
Bulk repair of misplaced files from a mapping file.
"""

from .mapping import MappingEntry, MappingFormatError, parse_rows, read_mapping
from .processor import RepairOutcome, RepairProcessor, RepairReport

__all__ = [
    "MappingEntry",
    "MappingFormatError",
    "RepairOutcome",
    "RepairProcessor",
    "RepairReport",
    "parse_rows",
    "read_mapping",
]
