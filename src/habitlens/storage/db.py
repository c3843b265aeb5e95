"""Database connection management and schema migrations."""

from __future__ import annotations

import sqlite3
import time
from pathlib import Path
from types import TracebackType

# Schema version for migrations
SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Users, with the insight profile stored inline
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    top_performing_tags_json TEXT,
    improvement_area_tags_json TEXT,
    peak_productivity_time TEXT,
    habit_analysis TEXT
);

-- Work sessions
CREATE TABLE IF NOT EXISTS work_sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    status TEXT NOT NULL,
    rating REAL,
    created_at INTEGER NOT NULL
);

-- One row per tag carried by a session
CREATE TABLE IF NOT EXISTS session_tags (
    session_id TEXT NOT NULL REFERENCES work_sessions(id) ON DELETE CASCADE,
    tag TEXT NOT NULL,
    position INTEGER NOT NULL,
    PRIMARY KEY (session_id, tag)
);

-- Ordered work intervals; timestamps kept as ISO 8601 to preserve offsets
CREATE TABLE IF NOT EXISTS session_intervals (
    session_id TEXT NOT NULL REFERENCES work_sessions(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT,
    PRIMARY KEY (session_id, position)
);

CREATE INDEX IF NOT EXISTS idx_sessions_user_status ON work_sessions(user_id, status);
CREATE INDEX IF NOT EXISTS idx_tags_tag ON session_tags(tag);

-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at INTEGER NOT NULL
);
"""


class DatabaseError(Exception):
    """Database operation error."""


class Database:
    """SQLite database connection manager with schema migrations."""

    def __init__(self, db_path: Path) -> None:
        """Initialize database connection.

        Args:
            db_path: Path to the SQLite database file.
        """
        self._db_path = db_path
        self._connection: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Get or create database connection.

        Returns:
            Active SQLite connection.

        Raises:
            DatabaseError: If the database file cannot be opened.
        """
        if self._connection is None:
            try:
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
                self._connection = sqlite3.connect(self._db_path)
            except (OSError, sqlite3.Error) as e:
                raise DatabaseError(f"Cannot open database {self._db_path}: {e}") from e
            self._connection.execute("PRAGMA foreign_keys = ON")
            self._connection.execute("PRAGMA journal_mode = WAL")
            self._connection.row_factory = sqlite3.Row

        return self._connection

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def transaction(self) -> _TransactionContext:
        """Get a transaction context manager.

        Usage:
            with db.transaction() as cursor:
                cursor.execute(...)
        """
        return _TransactionContext(self.connect())

    def execute(self, sql: str, params: tuple | dict | None = None) -> sqlite3.Cursor:
        """Execute a SQL statement.

        Args:
            sql: SQL statement to execute.
            params: Optional parameters for the statement.

        Returns:
            Cursor with results.
        """
        conn = self.connect()
        if params is None:
            return conn.execute(sql)
        return conn.execute(sql, params)

    def commit(self) -> None:
        """Commit the current transaction."""
        if self._connection is not None:
            self._connection.commit()

    def get_schema_version(self) -> int:
        """Get the current schema version.

        Returns:
            Current schema version, or 0 if not initialized.
        """
        try:
            cursor = self.execute(
                "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
            )
            row = cursor.fetchone()
            return row["version"] if row else 0
        except sqlite3.OperationalError:
            # Table doesn't exist yet
            return 0

    def initialize_schema(self) -> None:
        """Initialize or migrate the database schema."""
        current_version = self.get_schema_version()

        if current_version < SCHEMA_VERSION:
            self._apply_migrations(current_version)

    def _apply_migrations(self, from_version: int) -> None:
        conn = self.connect()

        if from_version == 0:
            conn.executescript(SCHEMA_SQL)
            conn.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (1, int(time.time())),
            )
            conn.commit()


class _TransactionContext:
    """Context manager for database transactions."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._cursor: sqlite3.Cursor | None = None

    def __enter__(self) -> sqlite3.Cursor:
        self._cursor = self._connection.cursor()
        return self._cursor

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._cursor is not None:
            if exc_type is None:
                self._connection.commit()
            else:
                self._connection.rollback()
            self._cursor.close()


def get_default_db_path() -> Path:
    """Get the default database path.

    Returns:
        Path to ~/.habitlens/db.sqlite
    """
    return Path.home() / ".habitlens" / "db.sqlite"
