"""
Command-line front end for bulk file checking and repair.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

from checking import BulkFileChecker, CheckingRunState, SqliteRunStateStore
from config import AppConfig, ensure_directories
from database import DatabaseManager
from repair import RepairProcessor
from storage import FileSystem, StreamWrapperResolver
from utils import InstanceLockError, ResourceMonitor, acquire_instance_lock, setup_logging

# Commands that mutate run state, the catalog, or files on disk.
LOCKED_COMMANDS = {
    "checking-start",
    "checking-cancel",
    "checking-execute",
    "checking-repair",
    "catalog-add",
}

ALIASES = {
    "fcheck-start": "checking-start",
    "file-checking-start": "checking-start",
    "fcheck-cancel": "checking-cancel",
    "file-checking-cancel": "checking-cancel",
    "fcheck-exec": "checking-execute",
    "file-checking-execute": "checking-execute",
    "fcheck-repair": "checking-repair",
    "file-checking-repair": "checking-repair",
    "fcheck-status": "checking-status",
    "fcheck-report": "checking-report",
}


class FileCheckerCommands:
    """Wire configured services together and render their results as text."""

    def __init__(self, config: AppConfig, out: Optional[TextIO] = None) -> None:
        self.config = config
        self.out = out or sys.stdout
        self.db_paths = self._build_db_paths()
        self.db_manager = DatabaseManager(self.db_paths)
        self.loggers = setup_logging(self.config.resolve_path("paths", "logs", default="logs"))
        self.logger = self.loggers["main"]
        self.resolver = StreamWrapperResolver.from_config(config)
        self.filesystem = FileSystem(self.resolver, logger=self.logger)
        self.run_state = CheckingRunState(SqliteRunStateStore(self.db_manager))
        self.checker = BulkFileChecker(
            self.run_state,
            self.db_manager,
            self.resolver,
            logger=self.logger,
            monitor=ResourceMonitor(
                max_cpu_percent=float(self.config.get("resource_limits", "max_cpu_percent", default=0)),
                max_ram_percent=float(self.config.get("resource_limits", "max_ram_percent", default=0)),
            ),
            batch_size=int(self.config.get("checking", "batch_size", default=100)),
            save_every=int(self.config.get("checking", "save_every", default=50)),
        )
        self.repair_processor = RepairProcessor(
            self.db_manager,
            self.filesystem,
            logger=self.logger,
            movement_logger=self.loggers["movement"],
        )

    def initialize(self) -> None:
        self.db_manager.initialize()

    def close(self) -> None:
        self.db_manager.close()

    def checking_start(self) -> int:
        if self.checker.start():
            self._write("Bulk file checking requested. To actually check files, next run 'checking-execute'.")
        else:
            self._write(
                "Bulk file checking has already been requested. To actually check files, instead run 'checking-execute'."
            )
        return 0

    def checking_cancel(self) -> int:
        self.checker.cancel()
        self._write("Bulk file checking cancelled.")
        return 0

    def checking_execute(self, seconds: Optional[float] = None, log: bool = False) -> int:
        if seconds is None:
            seconds = float(self.config.get("checking", "default_seconds", default=50))
        self._write(f"Files will be checked for up to {seconds:g} seconds. Checking now ...")
        result = self.checker.execute_in_background(seconds, log=log)
        if result.aborted:
            self._write("File checking has not been previously started, checking aborted.")
            self._write("To start checking, first run 'checking-start'.")
            return 0
        self._write(f"{result.files_just_checked} files just checked.")
        self._write(
            f"So far in this run {result.files_checked_count} out of {result.files_to_check} files checked, "
            f"with {result.files_missing_count} missing files detected."
        )
        if result.finished:
            self._write("File checking completed.")
        else:
            self._write("To check more files, run 'checking-execute' again.")
        return 0

    def checking_repair(self, csv_path: Optional[str], log: bool = False) -> int:
        if not csv_path:
            self._write("The repair command requires a csv file as parameter")
            return 1
        path = Path(csv_path).expanduser()
        if not path.exists():
            self._write(f'The file "{csv_path}" does not exist.')
            return 1
        if not os.access(path, os.R_OK) or not path.is_file():
            self._write(f'The file "{csv_path}" cannot be read.')
            return 1

        report = self.repair_processor.repair_file(
            path,
            log=log,
            expected_column=int(self.config.get("repair", "expected_column", default=0)),
            current_column=int(self.config.get("repair", "current_column", default=1)),
            delimiter=str(self.config.get("repair", "delimiter", default=",")),
            skip_header=bool(self.config.get("repair", "skip_header", default=False)),
        )
        for outcome in report.outcomes:
            self._write(f"{outcome.status.upper()}: {outcome.message}")
        self._write(f"Repair finished: {report.moved} moved, {report.errors} errors, {report.skipped} skipped.")
        return 0 if report.completed else 1

    def checking_status(self) -> int:
        run = self.checker.get_status()
        self._write(f"Status: {run.status.value}")
        self._write(f"Checked {run.checked_count} of {run.total_to_check} files, {run.missing_count} missing.")
        if run.requested_at:
            self._write(f"Requested at {run.requested_at}, last updated {run.updated_at}.")
        if run.finished_at:
            self._write(f"Finished at {run.finished_at}.")
        return 0

    def checking_report(self, limit: Optional[int] = None, json_path: Optional[str] = None) -> int:
        missing = self.db_manager.list_missing(limit=limit)
        for record in missing:
            self._write(f"{record.file_id}\t{record.uri}\t{record.checked_at or ''}")
        self._write(f"{len(missing)} missing files listed.")
        if json_path:
            target = Path(json_path).expanduser()
            ensure_directories([target.parent])
            target.write_text(
                json.dumps(
                    {
                        "status_counts": self.db_manager.count_by_status(),
                        "missing": [
                            {"file_id": r.file_id, "uri": r.uri, "checked_at": r.checked_at} for r in missing
                        ],
                    },
                    indent=2,
                ),
                encoding="utf-8",
            )
            self._write(f"Report written to {target}")
        return 0

    def catalog_add(self, uris: Sequence[str]) -> int:
        for uri in uris:
            file_id = self.db_manager.add_file(uri)
            self._write(f"{file_id}\t{uri}")
        return 0

    def dispatch(self, args: argparse.Namespace) -> int:
        command = ALIASES.get(args.command, args.command)
        if command == "checking-start":
            return self.checking_start()
        if command == "checking-cancel":
            return self.checking_cancel()
        if command == "checking-execute":
            return self.checking_execute(args.seconds, log=args.log)
        if command == "checking-repair":
            return self.checking_repair(args.csv, log=args.log)
        if command == "checking-status":
            return self.checking_status()
        if command == "checking-report":
            return self.checking_report(limit=args.limit, json_path=args.json)
        if command == "catalog-add":
            return self.catalog_add(args.uris)
        raise ValueError(f"Unknown command: {args.command}")

    def _build_db_paths(self) -> dict[str, Path]:
        return {
            "catalog": self.config.resolve_path("databases", "catalog", default="data/catalog.sqlite"),
            "state": self.config.resolve_path("databases", "state", default="data/state.sqlite"),
        }

    def _write(self, message: str) -> None:
        print(message, file=self.out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check that catalogued files exist and repair misplaced ones.")
    parser.add_argument("--config", default=None, help="Config path (default: $FILE_CHECKER_CONFIG or ./config.yaml)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "checking-start", aliases=["fcheck-start", "file-checking-start"], help="Request a bulk checking run"
    )
    subparsers.add_parser(
        "checking-cancel", aliases=["fcheck-cancel", "file-checking-cancel"], help="Cancel the current run"
    )

    execute = subparsers.add_parser(
        "checking-execute",
        aliases=["fcheck-exec", "file-checking-execute"],
        help="Check files for up to a number of seconds",
    )
    execute.add_argument("seconds", nargs="?", type=float, default=None, help="Seconds to check for")
    execute.add_argument("--log", action="store_true", help="Log this execution")

    repair = subparsers.add_parser(
        "checking-repair",
        aliases=["fcheck-repair", "file-checking-repair"],
        help="Move files listed in a mapping CSV to their expected location",
    )
    repair.add_argument("csv", nargs="?", default=None, help="Mapping CSV: expected URI, current URI")
    repair.add_argument("--log", action="store_true", help="Log this execution")

    subparsers.add_parser("checking-status", aliases=["fcheck-status"], help="Show the current run")

    report = subparsers.add_parser("checking-report", aliases=["fcheck-report"], help="List missing files")
    report.add_argument("--limit", type=int, default=None, help="Maximum rows to list")
    report.add_argument("--json", default=None, help="Also write the report to this JSON file")

    catalog_add = subparsers.add_parser("catalog-add", help="Register file URIs in the catalog")
    catalog_add.add_argument("uris", nargs="+", help="Logical URIs such as public://images/a.png")
    return parser


def main(argv: Optional[Sequence[str]] = None, out: Optional[TextIO] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    try:
        config = AppConfig.load(Path(args.config) if args.config else None)
    except FileNotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    lock = None
    command = ALIASES.get(args.command, args.command)
    if command in LOCKED_COMMANDS and os.environ.get("FILE_CHECKER_ALLOW_MULTI_INSTANCE") != "1":
        try:
            lock = acquire_instance_lock(config.resolve_path("paths", "lock", default="data/file_checker.lock"))
        except InstanceLockError:
            print(
                "ERROR: Another file checker is already running. Checking slices must not overlap.\n"
                "Set FILE_CHECKER_ALLOW_MULTI_INSTANCE=1 to override.",
                file=sys.stderr,
            )
            return 2

    try:
        commands = FileCheckerCommands(config, out=out)
        try:
            commands.initialize()
            return commands.dispatch(args)
        except Exception:
            commands.logger.exception("Command %s failed.", command)
            raise
        finally:
            commands.close()
    finally:
        if lock is not None:
            lock.release()


if __name__ == "__main__":
    raise SystemExit(main())
