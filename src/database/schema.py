"""
Database schema definitions for the file checker.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Dict


def create_databases(db_paths: Dict[str, Path]) -> None:
    """Create all SQLite databases and their tables."""
    create_catalog_db(db_paths["catalog"])
    create_state_db(db_paths["state"])


def create_catalog_db(db_path: Path) -> None:
    """Create the file catalog database and its tables."""
    conn = _connect(db_path)
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS files (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            uri TEXT UNIQUE,
            filename TEXT,
            status TEXT DEFAULT 'unknown',
            checked_at TIMESTAMP,
            created_at TIMESTAMP
        )
        """
    )
    _ensure_column(conn, "files", "status", "TEXT DEFAULT 'unknown'")
    _ensure_column(conn, "files", "checked_at", "TIMESTAMP")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_files_status ON files(status)")
    conn.commit()
    conn.close()


def create_state_db(db_path: Path) -> None:
    """Create the state database for run state slots and the operation log."""
    conn = _connect(db_path)
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS state (
            name TEXT PRIMARY KEY,
            value_json TEXT,
            updated_at TIMESTAMP
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS file_operations (
            id INTEGER PRIMARY KEY,
            operation_id TEXT,
            action TEXT,
            source_path TEXT,
            destination_path TEXT,
            status TEXT,
            created_at TIMESTAMP,
            error_message TEXT
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_file_operations_operation ON file_operations(operation_id)")
    conn.commit()
    conn.close()


def _connect(db_path: Path) -> sqlite3.Connection:
    """Create a SQLite connection with WAL enabled."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL;")
    return conn


def _ensure_column(conn: sqlite3.Connection, table: str, column: str, column_type: str) -> None:
    """Ensure a column exists on a SQLite table."""
    cursor = conn.execute(f"PRAGMA table_info({table})")
    existing = {row[1] for row in cursor.fetchall()}
    if column in existing:
        return
    conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {column_type}")
