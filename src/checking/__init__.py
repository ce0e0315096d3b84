"""
Bulk file checking: run state and the time-sliced checking engine.
"""

from .engine import BulkFileChecker, CatalogStore, ExecutionResult
from .run_state import (
    RUN_STATE_KEY,
    CheckingRun,
    CheckingRunState,
    MemoryRunStateStore,
    RunStateStore,
    RunStatus,
    SqliteRunStateStore,
)

__all__ = [
    "BulkFileChecker",
    "CatalogStore",
    "CheckingRun",
    "CheckingRunState",
    "ExecutionResult",
    "MemoryRunStateStore",
    "RUN_STATE_KEY",
    "RunStateStore",
    "RunStatus",
    "SqliteRunStateStore",
]
