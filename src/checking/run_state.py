"""
Durable state of the bulk file checking run.

Only one run exists at a time. It is stored as a single JSON slot so that
short-lived processes can pick up where the previous slice stopped.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Optional, Protocol

from database import DatabaseManager

RUN_STATE_KEY = "file_checker.background_run_state"


class RunStatus(str, Enum):
    IDLE = "idle"
    REQUESTED = "requested"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = frozenset({RunStatus.REQUESTED, RunStatus.IN_PROGRESS})


@dataclass
class CheckingRun:
    """Snapshot of a checking run.

    ``cursor`` is the ID of the last record checked. Records are visited in
    ascending ID order up to ``last_enrolled_id``, the highest ID that existed
    when the run was requested.
    """

    status: RunStatus = RunStatus.IDLE
    cursor: int = 0
    last_enrolled_id: int = 0
    total_to_check: int = 0
    checked_count: int = 0
    missing_count: int = 0
    just_checked_count: int = 0
    requested_at: Optional[str] = None
    updated_at: Optional[str] = None
    finished_at: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def finished(self) -> bool:
        return self.status is RunStatus.FINISHED

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "CheckingRun":
        if not data:
            return cls()
        known = {item.name for item in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        try:
            values["status"] = RunStatus(values.get("status", RunStatus.IDLE.value))
        except ValueError:
            values["status"] = RunStatus.IDLE
        return cls(**values)


class RunStateStore(Protocol):
    def load(self) -> Optional[dict[str, Any]]:
        ...

    def save(self, data: dict[str, Any]) -> None:
        ...


class SqliteRunStateStore:
    """Keep the run in a named slot of the state database."""

    def __init__(self, db_manager: DatabaseManager, key: str = RUN_STATE_KEY) -> None:
        self.db_manager = db_manager
        self.key = key

    def load(self) -> Optional[dict[str, Any]]:
        value = self.db_manager.get_state(self.key)
        return value if isinstance(value, dict) else None

    def save(self, data: dict[str, Any]) -> None:
        self.db_manager.set_state(self.key, data)


class MemoryRunStateStore:
    """In-process store, handy for tests and dry runs."""

    def __init__(self, data: Optional[dict[str, Any]] = None) -> None:
        self.data = dict(data) if data else None

    def load(self) -> Optional[dict[str, Any]]:
        return dict(self.data) if self.data is not None else None

    def save(self, data: dict[str, Any]) -> None:
        self.data = dict(data)


class CheckingRunState:
    """Read and write the current run through a RunStateStore."""

    def __init__(self, store: RunStateStore) -> None:
        self.store = store

    def get_status(self) -> CheckingRun:
        """Return a copy of the stored run. Never writes."""
        return CheckingRun.from_dict(self.store.load())

    def save(self, run: CheckingRun) -> None:
        self.store.save(run.to_dict())

    def reset(self) -> CheckingRun:
        """Clear the stored run back to idle."""
        run = CheckingRun()
        self.save(run)
        return run
