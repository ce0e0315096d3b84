"""
Single-driver guard so checking slices and repairs never overlap.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO


class InstanceLockError(RuntimeError):
    """Raised when another file checker process holds the lock."""


@dataclass
class InstanceLock:
    """Holds the lock file handle; the lock lives as long as the handle is open."""

    handle: TextIO
    path: Path

    def release(self) -> None:
        if self.handle.closed:
            return
        _unlock_file(self.handle)
        self.handle.close()

    def __enter__(self) -> "InstanceLock":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


def _lock_file(handle: TextIO) -> None:
    if os.name == "nt":
        import msvcrt

        try:
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
        except OSError as exc:
            raise InstanceLockError("Another file checker is already running.") from exc
    else:
        import fcntl

        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as exc:
            raise InstanceLockError("Another file checker is already running.") from exc


def _unlock_file(handle: TextIO) -> None:
    if os.name == "nt":
        import msvcrt

        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl

        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def _write_lock_info(handle: TextIO) -> None:
    handle.seek(0)
    handle.truncate()
    handle.write(f"pid={os.getpid()}\nargv={' '.join(sys.argv)}")
    handle.flush()


def acquire_instance_lock(lock_path: Path) -> InstanceLock:
    """Acquire a non-blocking lock or raise InstanceLockError."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    handle = lock_path.open("a+", encoding="utf-8")
    try:
        _lock_file(handle)
        _write_lock_info(handle)
    except Exception:
        handle.close()
        raise
    return InstanceLock(handle=handle, path=lock_path)
