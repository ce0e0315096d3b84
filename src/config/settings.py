"""
Configuration loader and helpers for the file checker.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable

import yaml

DEFAULT_CONFIG_PATH = Path("config.yaml")
ENV_CONFIG_PATH = "FILE_CHECKER_CONFIG"


@dataclass(frozen=True)
class AppConfig:
    """Raw YAML settings plus helpers that resolve paths against the config file."""

    root_dir: Path
    raw: Dict[str, Any]

    @classmethod
    def load(cls, path: Path | None = None) -> "AppConfig":
        """Load configuration from an explicit path, the environment, or ./config.yaml."""
        if path is None:
            env_value = os.environ.get(ENV_CONFIG_PATH)
            path = Path(env_value) if env_value else DEFAULT_CONFIG_PATH
        path = path.expanduser()
        if not path.is_absolute():
            path = (Path.cwd() / path).resolve()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        return cls(root_dir=path.parent, raw=data)

    def get(self, *keys: str, default: Any = None) -> Any:
        """Retrieve nested configuration values with an optional default."""
        node: Any = self.raw
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def resolve_path(self, *keys: str, default: str | None = None) -> Path:
        """Resolve a configured path to an absolute Path."""
        value = self.get(*keys, default=default)
        if value is None:
            raise KeyError(f"Missing config path for {'.'.join(keys)}")
        return self.absolute(value)

    def resolve_path_map(self, *keys: str) -> Dict[str, Path]:
        """Resolve a mapping of names to paths, e.g. storage schemes to root directories."""
        node = self.get(*keys, default={}) or {}
        if not isinstance(node, dict):
            raise ValueError(f"Config value {'.'.join(keys)} must be a mapping")
        return {str(name): self.absolute(value) for name, value in node.items()}

    def absolute(self, value: str | Path) -> Path:
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = (self.root_dir / path).resolve()
        return path


def ensure_directories(paths: Iterable[Path]) -> None:
    """Create directories if they do not already exist."""
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)
