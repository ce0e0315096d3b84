"""
Physical file moves between logical URIs.
"""

from __future__ import annotations

import logging
import shutil
from enum import Enum
from pathlib import Path
from typing import Optional

from .resolver import PathResolver


class ExistsPolicy(str, Enum):
    """What to do when the destination of a move already exists."""

    REPLACE = "replace"
    RENAME = "rename"
    ERROR = "error"


class FileSystem:
    """Move files addressed by URI, creating destination directories as needed."""

    def __init__(self, resolver: PathResolver, logger: Optional[logging.Logger] = None) -> None:
        self.resolver = resolver
        self.logger = logger or logging.getLogger("file_checker")

    def realpath(self, uri: str) -> Optional[Path]:
        return self.resolver.resolve(uri)

    def exists(self, uri: str) -> bool:
        path = self.resolver.resolve(uri)
        return path is not None and path.exists()

    def move(self, source_uri: str, destination_uri: str, exists: ExistsPolicy = ExistsPolicy.RENAME) -> Path:
        """Move a file and return the path it ended up at."""
        source = self.resolver.resolve(source_uri)
        if source is None:
            raise ValueError(f"Cannot resolve source URI: {source_uri}")
        destination = self.resolver.resolve(destination_uri)
        if destination is None:
            raise ValueError(f"Cannot resolve destination URI: {destination_uri}")
        if not source.exists():
            raise FileNotFoundError(f"Source file does not exist: {source}")

        if destination.exists():
            if exists is ExistsPolicy.ERROR:
                raise FileExistsError(f"Destination already exists: {destination}")
            if exists is ExistsPolicy.RENAME:
                destination = self._resolve_conflict(destination)
            elif destination.is_dir():
                raise IsADirectoryError(f"Destination is a directory: {destination}")
            else:
                destination.unlink()

        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(destination))
        self.logger.debug("Moved %s -> %s", source, destination)
        return destination

    def _resolve_conflict(self, destination: Path) -> Path:
        stem = destination.stem
        suffix = destination.suffix
        parent = destination.parent
        counter = 0
        while True:
            candidate = parent / f"{stem}_{counter}{suffix}"
            if not candidate.exists():
                return candidate
            counter += 1
