"""
SQLite access layer for the file catalog, state slots, and the operation log.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .schema import create_databases

STATUS_UNKNOWN = "unknown"
STATUS_PRESENT = "present"
STATUS_MISSING = "missing"

_FILE_COLUMNS = "id, uri, filename, status, checked_at, created_at"


@dataclass(frozen=True)
class FileRecord:
    """A managed file as stored in the catalog."""

    file_id: int
    uri: str
    filename: str
    status: str
    checked_at: Optional[str]
    created_at: Optional[str]


class DatabaseManager:
    """Manage SQLite connections and catalog/state queries."""

    def __init__(self, db_paths: Dict[str, Path]) -> None:
        self.db_paths = db_paths
        self._catalog_conn: Optional[sqlite3.Connection] = None
        self._state_conn: Optional[sqlite3.Connection] = None

    def initialize(self) -> None:
        """Create database files and tables."""
        create_databases(self.db_paths)

    def connect(self) -> None:
        """Open database connections if they are not already open."""
        if self._catalog_conn is None:
            self._catalog_conn = sqlite3.connect(self.db_paths["catalog"])
            self._catalog_conn.execute("PRAGMA journal_mode=WAL;")
        if self._state_conn is None:
            self._state_conn = sqlite3.connect(self.db_paths["state"])
            self._state_conn.execute("PRAGMA journal_mode=WAL;")

    def close(self) -> None:
        """Close any open database connections."""
        if self._catalog_conn is not None:
            self._catalog_conn.close()
            self._catalog_conn = None
        if self._state_conn is not None:
            self._state_conn.close()
            self._state_conn = None

    # Catalog

    def add_file(self, uri: str, filename: Optional[str] = None) -> int:
        """Register a file URI and return its record ID. Existing URIs are left untouched."""
        self.connect()
        existing = self.find_by_uri(uri)
        if existing is not None:
            return existing.file_id
        if filename is None:
            filename = uri.rsplit("/", 1)[-1]
        cursor = self._catalog_conn.execute(
            """
            INSERT INTO files (uri, filename, status, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (uri, filename, STATUS_UNKNOWN, datetime.utcnow().isoformat()),
        )
        self._catalog_conn.commit()
        return int(cursor.lastrowid)

    def get_file(self, file_id: int) -> Optional[FileRecord]:
        self.connect()
        row = self._catalog_conn.execute(
            f"SELECT {_FILE_COLUMNS} FROM files WHERE id = ?",
            (file_id,),
        ).fetchone()
        return _record_from_row(row) if row else None

    def find_by_uri(self, uri: str) -> Optional[FileRecord]:
        """Return the catalog record stored under a URI, if any."""
        self.connect()
        row = self._catalog_conn.execute(
            f"SELECT {_FILE_COLUMNS} FROM files WHERE uri = ? LIMIT 1",
            (uri,),
        ).fetchone()
        return _record_from_row(row) if row else None

    def delete_file(self, file_id: int) -> None:
        self.connect()
        self._catalog_conn.execute("DELETE FROM files WHERE id = ?", (file_id,))
        self._catalog_conn.commit()

    def count_checkable(self) -> int:
        """Count records with a stored URI."""
        self.connect()
        row = self._catalog_conn.execute(
            "SELECT COUNT(*) FROM files WHERE uri IS NOT NULL AND uri != ''"
        ).fetchone()
        return int(row[0]) if row else 0

    def max_checkable_id(self) -> int:
        """Return the highest record ID with a stored URI, or 0 for an empty catalog."""
        self.connect()
        row = self._catalog_conn.execute(
            "SELECT MAX(id) FROM files WHERE uri IS NOT NULL AND uri != ''"
        ).fetchone()
        return int(row[0]) if row and row[0] is not None else 0

    def iter_checkable_after(self, cursor: int, last_id: int, limit: int) -> list[FileRecord]:
        """Fetch the next page of records with cursor < id <= last_id in ascending ID order."""
        self.connect()
        rows = self._catalog_conn.execute(
            f"""
            SELECT {_FILE_COLUMNS}
            FROM files
            WHERE id > ? AND id <= ? AND uri IS NOT NULL AND uri != ''
            ORDER BY id ASC
            LIMIT ?
            """,
            (cursor, last_id, limit),
        ).fetchall()
        return [_record_from_row(row) for row in rows]

    def set_file_status(self, file_id: int, status: str, checked_at: Optional[str] = None) -> None:
        """Store the existence status of a record."""
        self.connect()
        self._catalog_conn.execute(
            "UPDATE files SET status = ?, checked_at = ? WHERE id = ?",
            (status, checked_at or datetime.utcnow().isoformat(), file_id),
        )
        self._catalog_conn.commit()

    def set_file_statuses(self, statuses: Iterable[tuple[int, str, str]]) -> None:
        """Store several ``(file_id, status, checked_at)`` results in one commit."""
        self.connect()
        self._catalog_conn.executemany(
            "UPDATE files SET status = ?, checked_at = ? WHERE id = ?",
            [(status, checked_at, file_id) for file_id, status, checked_at in statuses],
        )
        self._catalog_conn.commit()

    def update_file_uri(self, file_id: int, uri: str) -> None:
        """Point a record at a new URI after the file was moved."""
        self.connect()
        self._catalog_conn.execute(
            "UPDATE files SET uri = ?, filename = ? WHERE id = ?",
            (uri, uri.rsplit("/", 1)[-1], file_id),
        )
        self._catalog_conn.commit()

    def list_missing(self, limit: Optional[int] = None) -> list[FileRecord]:
        """Return records flagged missing by the last check, oldest ID first."""
        self.connect()
        query = f"SELECT {_FILE_COLUMNS} FROM files WHERE status = ? ORDER BY id ASC"
        params: tuple = (STATUS_MISSING,)
        if limit is not None:
            query += " LIMIT ?"
            params = (STATUS_MISSING, limit)
        rows = self._catalog_conn.execute(query, params).fetchall()
        return [_record_from_row(row) for row in rows]

    def count_by_status(self) -> dict[str, int]:
        self.connect()
        cursor = self._catalog_conn.execute(
            "SELECT COALESCE(status, ?), COUNT(*) FROM files GROUP BY COALESCE(status, ?)",
            (STATUS_UNKNOWN, STATUS_UNKNOWN),
        )
        return {str(status): int(count) for status, count in cursor.fetchall()}

    # State slots

    def get_state(self, name: str) -> Optional[Any]:
        """Return the decoded JSON value stored under a state name."""
        self.connect()
        row = self._state_conn.execute(
            "SELECT value_json FROM state WHERE name = ?",
            (name,),
        ).fetchone()
        if row is None or row[0] is None:
            return None
        return json.loads(row[0])

    def set_state(self, name: str, value: Any) -> None:
        """Persist a JSON-serializable value under a state name."""
        self.connect()
        self._state_conn.execute(
            """
            INSERT INTO state (name, value_json, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(name) DO UPDATE SET
                value_json = excluded.value_json,
                updated_at = excluded.updated_at
            """,
            (name, json.dumps(value), datetime.utcnow().isoformat()),
        )
        self._state_conn.commit()

    def delete_state(self, name: str) -> None:
        self.connect()
        self._state_conn.execute("DELETE FROM state WHERE name = ?", (name,))
        self._state_conn.commit()

    # Operation log

    def record_file_operation(
        self,
        operation_id: str,
        action: str,
        source_path: str,
        destination_path: Optional[str],
        status: str,
        error_message: Optional[str] = None,
    ) -> None:
        """Append a file operation to the operation log."""
        self.connect()
        self._state_conn.execute(
            """
            INSERT INTO file_operations (
                operation_id,
                action,
                source_path,
                destination_path,
                status,
                created_at,
                error_message
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                operation_id,
                action,
                source_path,
                destination_path,
                status,
                datetime.utcnow().isoformat(),
                error_message,
            ),
        )
        self._state_conn.commit()

    def list_file_operations(self, operation_id: Optional[str] = None, limit: Optional[int] = None) -> list[dict]:
        """List logged file operations, newest last."""
        self.connect()
        query = """
            SELECT operation_id, action, source_path, destination_path, status, created_at, error_message
            FROM file_operations
        """
        params: list = []
        if operation_id is not None:
            query += " WHERE operation_id = ?"
            params.append(operation_id)
        query += " ORDER BY id ASC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        cursor = self._state_conn.execute(query, params)
        return [
            {
                "operation_id": row[0],
                "action": row[1],
                "source_path": row[2],
                "destination_path": row[3],
                "status": row[4],
                "created_at": row[5],
                "error_message": row[6],
            }
            for row in cursor.fetchall()
        ]


def _record_from_row(row: tuple) -> FileRecord:
    return FileRecord(
        file_id=int(row[0]),
        uri=str(row[1]) if row[1] is not None else "",
        filename=str(row[2]) if row[2] else "",
        status=str(row[3]) if row[3] else STATUS_UNKNOWN,
        checked_at=str(row[4]) if row[4] else None,
        created_at=str(row[5]) if row[5] else None,
    )
