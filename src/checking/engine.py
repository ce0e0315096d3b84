"""
Bulk file checking engine.

A run is requested with ``start()`` and then worked through in bounded time
slices by ``execute_in_background()``, typically from a scheduler that calls
it every few minutes. Each slice resumes from the persisted cursor.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional, Protocol

from database import STATUS_MISSING, STATUS_PRESENT, FileRecord
from storage import PathResolver
from utils import ResourceMonitor

from .run_state import CheckingRun, CheckingRunState, RunStatus


class CatalogStore(Protocol):
    def count_checkable(self) -> int:
        ...

    def max_checkable_id(self) -> int:
        ...

    def iter_checkable_after(self, cursor: int, last_id: int, limit: int) -> list[FileRecord]:
        ...

    def set_file_status(self, file_id: int, status: str, checked_at: Optional[str] = None) -> None:
        ...

    def set_file_statuses(self, statuses: Iterable[tuple[int, str, str]]) -> None:
        ...


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one execution slice."""

    files_just_checked: int
    files_checked_count: int
    files_to_check: int
    files_missing_count: int
    finished: bool
    aborted: bool

    @classmethod
    def from_run(cls, run: CheckingRun, aborted: bool = False) -> "ExecutionResult":
        return cls(
            files_just_checked=0 if aborted else run.just_checked_count,
            files_checked_count=run.checked_count,
            files_to_check=run.total_to_check,
            files_missing_count=run.missing_count,
            finished=run.finished,
            aborted=aborted,
        )


class BulkFileChecker:
    """Start, execute in slices, and cancel a catalog-wide existence check."""

    def __init__(
        self,
        run_state: CheckingRunState,
        catalog: CatalogStore,
        resolver: PathResolver,
        logger: Optional[logging.Logger] = None,
        monitor: Optional[ResourceMonitor] = None,
        batch_size: int = 100,
        save_every: int = 50,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.run_state = run_state
        self.catalog = catalog
        self.resolver = resolver
        self.logger = logger or logging.getLogger("file_checker")
        self.monitor = monitor
        self.batch_size = max(int(batch_size), 1)
        self.save_every = max(int(save_every), 1)
        self.clock = clock

    def get_status(self) -> CheckingRun:
        return self.run_state.get_status()

    def start(self) -> bool:
        """Request a new run. Returns False if one is already requested or in progress."""
        current = self.run_state.get_status()
        if current.is_active:
            return False
        run = self.run_state.reset()
        run.status = RunStatus.REQUESTED
        run.last_enrolled_id = self.catalog.max_checkable_id()
        run.total_to_check = self.catalog.count_checkable()
        run.requested_at = _now()
        run.updated_at = run.requested_at
        self.run_state.save(run)
        self.logger.info("Bulk file checking requested for %s files.", run.total_to_check)
        return True

    def cancel(self) -> None:
        """Cancel whatever run is stored. Safe to call in any state."""
        previous = self.run_state.get_status()
        self.run_state.save(CheckingRun(status=RunStatus.CANCELLED, updated_at=_now()))
        if previous.is_active:
            self.logger.info(
                "Bulk file checking cancelled after %s of %s files.",
                previous.checked_count,
                previous.total_to_check,
            )

    def execute_in_background(self, max_seconds: float, log: bool = False) -> ExecutionResult:
        """Check files until the run finishes or ``max_seconds`` have elapsed.

        At least one record is checked per call when any remain. The time
        budget is tested between records only, so a slice may overrun
        slightly. Statuses and the run are written together every
        ``save_every`` records and when the slice ends; a crash in between
        re-checks at most that many records. Without a requested or running
        run nothing is touched and the result has ``aborted`` set.
        """
        started = self.clock()
        run = self.run_state.get_status()
        if not run.is_active:
            return ExecutionResult.from_run(run, aborted=True)

        run.status = RunStatus.IN_PROGRESS
        run.just_checked_count = 0
        run.updated_at = _now()
        self.run_state.save(run)

        pending: list[tuple[int, str, str]] = []
        out_of_time = False
        while not out_of_time and not run.finished:
            batch = self.catalog.iter_checkable_after(run.cursor, run.last_enrolled_id, self.batch_size)
            if not batch:
                self._finish(run, pending)
                break
            for record in batch:
                if self.monitor is not None:
                    self.monitor.throttle()
                present = self._is_present(record)
                pending.append((record.file_id, STATUS_PRESENT if present else STATUS_MISSING, _now()))
                run.cursor = record.file_id
                run.checked_count = min(run.checked_count + 1, run.total_to_check)
                if not present:
                    run.missing_count = min(run.missing_count + 1, run.checked_count)
                    if log:
                        self.logger.warning("Missing file %s (id %s).", record.uri, record.file_id)
                run.just_checked_count += 1
                if run.cursor >= run.last_enrolled_id:
                    self._finish(run, pending)
                    break
                if (self.clock() - started) >= max_seconds:
                    self._flush(run, pending)
                    out_of_time = True
                    break
                if len(pending) >= self.save_every:
                    self._flush(run, pending)

        if log:
            self.logger.info(
                "File checking slice: %s files just checked, %s of %s checked so far, %s missing.%s",
                run.just_checked_count,
                run.checked_count,
                run.total_to_check,
                run.missing_count,
                " Run finished." if run.finished else "",
            )
        return ExecutionResult.from_run(run)

    def check_file(self, record: FileRecord) -> bool:
        """Check one record on disk and store its status. Returns True if the file exists."""
        present = self._is_present(record)
        self.catalog.set_file_status(
            record.file_id,
            STATUS_PRESENT if present else STATUS_MISSING,
            _now(),
        )
        return present

    def _is_present(self, record: FileRecord) -> bool:
        path = self.resolver.resolve(record.uri)
        return path is not None and path.is_file()

    def _flush(self, run: CheckingRun, pending: list[tuple[int, str, str]]) -> None:
        """Write buffered statuses, then the run that accounts for them."""
        if pending:
            self.catalog.set_file_statuses(pending)
            pending.clear()
        run.updated_at = _now()
        self.run_state.save(run)

    def _finish(self, run: CheckingRun, pending: list[tuple[int, str, str]]) -> None:
        run.status = RunStatus.FINISHED
        run.finished_at = _now()
        self._flush(run, pending)
        self.logger.info(
            "Bulk file checking finished: %s files checked, %s missing.",
            run.checked_count,
            run.missing_count,
        )


def _now() -> str:
    return datetime.utcnow().isoformat()
