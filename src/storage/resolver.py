"""
Map logical file URIs such as ``public://images/a.png`` to filesystem paths.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional, Protocol

from config import AppConfig

SCHEME_SEPARATOR = "://"


class PathResolver(Protocol):
    def resolve(self, uri: str) -> Optional[Path]:
        ...


class StreamWrapperResolver:
    """Resolve ``scheme://target`` URIs against configured root directories."""

    def __init__(self, schemes: Dict[str, Path]) -> None:
        self.schemes = {name.lower(): Path(os.path.normpath(root)) for name, root in schemes.items()}

    @classmethod
    def from_config(cls, config: AppConfig) -> "StreamWrapperResolver":
        return cls(config.resolve_path_map("storage", "schemes"))

    def resolve(self, uri: str) -> Optional[Path]:
        """Return the physical path for a URI, or None when it cannot be resolved.

        Plain absolute paths resolve to themselves. Unknown schemes and targets
        that escape the scheme root yield None.
        """
        uri = (uri or "").strip()
        if not uri:
            return None
        if SCHEME_SEPARATOR not in uri:
            path = Path(uri)
            return path if path.is_absolute() else None
        scheme, target = uri.split(SCHEME_SEPARATOR, 1)
        root = self.schemes.get(scheme.lower())
        if root is None:
            return None
        target = target.lstrip("/")
        candidate = Path(os.path.normpath(root / target)) if target else root
        if candidate != root and root not in candidate.parents:
            return None
        return candidate
