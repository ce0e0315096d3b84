"""
Move misplaced files back to the location their catalog record expects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Protocol

from database import STATUS_PRESENT, FileRecord
from storage import ExistsPolicy, FileSystem

from .mapping import MappingEntry, MappingFormatError, read_mapping

SKIPPED = "skipped"
ERROR = "error"
INFO = "info"
MOVED = "moved"
FATAL = "fatal"


class AnchorCatalog(Protocol):
    def find_by_uri(self, uri: str) -> Optional[FileRecord]:
        ...

    def set_file_status(self, file_id: int, status: str, checked_at: Optional[str] = None) -> None:
        ...

    def record_file_operation(
        self,
        operation_id: str,
        action: str,
        source_path: str,
        destination_path: Optional[str],
        status: str,
        error_message: Optional[str] = None,
    ) -> None:
        ...


@dataclass(frozen=True)
class RepairOutcome:
    line: int
    status: str
    code: str
    message: str
    source: str = ""
    destination: str = ""


@dataclass
class RepairReport:
    """All outcomes of one repair invocation, in input order."""

    operation_id: str
    outcomes: list[RepairOutcome] = field(default_factory=list)
    completed: bool = True

    def count(self, status: str) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def moved(self) -> int:
        return self.count(MOVED)

    @property
    def errors(self) -> int:
        return self.count(ERROR)

    @property
    def skipped(self) -> int:
        return self.count(SKIPPED)


class RepairProcessor:
    """Validate (expected, current) pairs and move files that pass every check.

    A pair is moved only when the current file exists on disk, nothing exists
    at the expected location, and the catalog has a record for the expected
    URI. Any failed check skips just that pair.
    """

    def __init__(
        self,
        catalog: AnchorCatalog,
        filesystem: FileSystem,
        logger: Optional[logging.Logger] = None,
        movement_logger: Optional[logging.Logger] = None,
    ) -> None:
        self.catalog = catalog
        self.filesystem = filesystem
        self.logger = logger or logging.getLogger("file_checker")
        self.movement_logger = movement_logger or logging.getLogger("file_checker.movement")

    def repair_file(
        self,
        path: Path,
        log: bool = False,
        expected_column: int = 0,
        current_column: int = 1,
        delimiter: str = ",",
        skip_header: bool = False,
    ) -> RepairReport:
        entries = read_mapping(
            path,
            expected_column=expected_column,
            current_column=current_column,
            delimiter=delimiter,
            skip_header=skip_header,
        )
        return self.repair(entries, log=log)

    def repair(self, entries: Iterable[MappingEntry], log: bool = False) -> RepairReport:
        report = RepairReport(operation_id=f"repair_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}")
        iterator = iter(entries)
        while True:
            try:
                entry = next(iterator)
            except StopIteration:
                break
            except MappingFormatError as exc:
                report.outcomes.append(
                    RepairOutcome(
                        line=exc.line,
                        status=FATAL,
                        code="malformed_row",
                        message=f"Failed to read mapping data on line {exc.line}: {exc.message}",
                    )
                )
                report.completed = False
                self.logger.error("Repair %s stopped at line %s: %s", report.operation_id, exc.line, exc.message)
                break
            report.outcomes.extend(self._process(entry, report.operation_id, log))

        self.logger.info(
            "Repair %s done. Moved=%s Errors=%s Skipped=%s Completed=%s",
            report.operation_id,
            report.moved,
            report.errors,
            report.skipped,
            report.completed,
        )
        return report

    def _process(self, entry: MappingEntry, operation_id: str, log: bool) -> list[RepairOutcome]:
        line = entry.line
        if entry.is_blank:
            return [RepairOutcome(line, SKIPPED, "blank_field", f"Skipping empty data on line {line}.")]

        source, destination = entry.current, entry.expected
        source_path = self.filesystem.realpath(source)
        if source_path is None or not source_path.is_file():
            return [self._error(entry, "source_missing", f"Source file {source} does not exist on line {line}")]

        destination_path = self.filesystem.realpath(destination)
        if destination_path is None:
            return [self._error(entry, "destination_unresolvable", f"Destination {destination} cannot be resolved on line {line}")]
        if destination_path.exists():
            return [self._error(entry, "destination_exists", f"Destination file {destination} already exists on line {line}")]

        anchor = self.catalog.find_by_uri(destination)
        if anchor is None:
            return [self._error(entry, "no_catalog_entry", f"No catalog entry for destination {destination} on line {line}")]

        outcomes = []
        if log:
            outcomes.append(RepairOutcome(line, INFO, "move", f"Move {source} => {destination}", source, destination))
            self.movement_logger.info("Repair move requested: %s -> %s (record %s)", source, destination, anchor.file_id)

        try:
            moved_to = self.filesystem.move(source, destination, ExistsPolicy.REPLACE)
        except (OSError, ValueError) as exc:
            self.movement_logger.error("Repair move failed: %s -> %s (%s)", source, destination, exc)
            self.catalog.record_file_operation(
                operation_id, "move", source, destination, "failed", error_message=str(exc)
            )
            outcomes.append(self._error(entry, "move_failed", f"Moving {source} to {destination} failed on line {line}: {exc}"))
            return outcomes

        self.catalog.set_file_status(anchor.file_id, STATUS_PRESENT, datetime.utcnow().isoformat())
        self.catalog.record_file_operation(operation_id, "move", source, destination, "completed")
        self.movement_logger.info("Repaired file moved: %s -> %s", source_path, moved_to)
        outcomes.append(RepairOutcome(line, MOVED, "moved", f"Moved {source} => {destination}", source, destination))
        return outcomes

    def _error(self, entry: MappingEntry, code: str, message: str) -> RepairOutcome:
        self.logger.warning("Repair line %s: %s", entry.line, message)
        return RepairOutcome(entry.line, ERROR, code, message, entry.current, entry.expected)
