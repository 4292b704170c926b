"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), applying migrations on application start
(``init_db``) and small helpers shared by the services.  Passport
posts are stored document‑style: one row per post whose ``passports``
column holds the embedded entries as JSON text.  Every write replaces
the whole row, mirroring a document store.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from .config import settings


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            full_name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            mobile_number TEXT,
            role TEXT NOT NULL DEFAULT 'user',
            is_active INTEGER NOT NULL DEFAULT 1,
            last_login TIMESTAMP,
            last_logout TIMESTAMP,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        );

        -- created_by/updated_by carry no FOREIGN KEY: posts are kept when
        -- their author is deleted and render the author as null.
        CREATE TABLE IF NOT EXISTS passport_posts (
            id TEXT PRIMARY KEY,
            created_by INTEGER NOT NULL,
            updated_by INTEGER,
            passports TEXT NOT NULL,
            created_at TIMESTAMP NOT NULL,
            updated_at TIMESTAMP NOT NULL
        );

        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER,
            action TEXT NOT NULL,
            object_type TEXT,
            object_id TEXT,
            timestamp TIMESTAMP NOT NULL,
            details TEXT
        );
        """,
    ),
    # Migration 2: lookup indices
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_passport_posts_created_by ON passport_posts(created_by);
        CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);
        CREATE INDEX IF NOT EXISTS idx_audit_logs_timestamp ON audit_logs(timestamp);
        """,
    ),
]


def _resolve(path: str) -> str:
    """Return ``path`` unchanged if absolute, else resolve it against the project root."""
    if os.path.isabs(path):
        return path
    base_dir = Path(__file__).resolve().parent.parent.parent  # passport_posts_api/
    return str((base_dir / path).resolve())


def get_database_path() -> str:
    """Compute the path to the SQLite database file."""
    return _resolve(settings.database_url)


def get_deleted_log_dir() -> str:
    """Compute the directory holding the deleted passports archive."""
    return _resolve(settings.deleted_log_dir)


def utc_now() -> str:
    """Current UTC time as an ISO‑8601 string, the storage format for all timestamps."""
    return datetime.now(timezone.utc).isoformat()


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection uses a row factory to access columns by name.  No
    type detection is enabled; timestamps are stored and returned as
    ISO strings and parsed by the Pydantic schemas.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations defined in
    ``MIGRATIONS``.  To add a migration, append it with an incremented
    version number.
    """
    db_path = Path(get_database_path())
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
