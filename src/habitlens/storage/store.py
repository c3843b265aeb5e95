"""User and work-session storage layer."""

from __future__ import annotations

import json
import sqlite3
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from habitlens.models import (
    Interval,
    SessionStatus,
    User,
    UserInsights,
    WorkSession,
    generate_id,
)
from habitlens.storage.db import Database, DatabaseError, get_default_db_path


class StoreError(Exception):
    """Base class for store operation errors."""


class DataAccessError(StoreError):
    """The store could not be read or returned malformed records."""


class PersistenceError(StoreError):
    """A write to the store failed."""


class HabitStore:
    """Storage for users, their work sessions and their insight profiles.

    Sessions are read through :meth:`get_eligible_sessions`; insight profiles
    are written through :meth:`update_user_insights`.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        """Initialize the store.

        Args:
            db_path: Path to SQLite database. Defaults to ~/.habitlens/db.sqlite

        Raises:
            DataAccessError: If the database cannot be opened or initialized.
        """
        self._db_path = db_path or get_default_db_path()
        self._db = Database(self._db_path)

        try:
            self._db.initialize_schema()
        except (DatabaseError, sqlite3.Error) as e:
            raise DataAccessError(f"Cannot initialize store at {self._db_path}: {e}") from e

    @property
    def db(self) -> Database:
        """Get the database instance."""
        return self._db

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    def __enter__(self) -> HabitStore:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.close()

    # User profiles

    def create_user(self, name: str, user_id: str | None = None) -> User:
        """Create a new user profile.

        Args:
            name: Display name.
            user_id: Explicit identifier. A UUID v7 is generated if omitted.

        Returns:
            The created User.

        Raises:
            PersistenceError: If the user cannot be written (e.g. duplicate id).
        """
        user = User(
            id=user_id or generate_id(),
            name=name,
            created_at=datetime.now(timezone.utc),
        )
        try:
            with self._db.transaction() as cursor:
                cursor.execute(
                    "INSERT INTO users (id, name, created_at) VALUES (?, ?, ?)",
                    (user.id, user.name, int(user.created_at.timestamp())),
                )
        except (DatabaseError, sqlite3.Error) as e:
            raise PersistenceError(f"Failed to create user {user.id}: {e}") from e
        return user

    def get_user(self, user_id: str) -> User | None:
        """Get a user profile, including any persisted insights.

        Raises:
            DataAccessError: If the store cannot be read.
        """
        try:
            row = self._db.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        except (DatabaseError, sqlite3.Error) as e:
            raise DataAccessError(f"Failed to read user {user_id}: {e}") from e
        if row is None:
            return None
        return self._row_to_user(row)

    def list_users(self) -> list[User]:
        """List all user profiles ordered by creation time."""
        try:
            rows = self._db.execute("SELECT * FROM users ORDER BY created_at, id").fetchall()
        except (DatabaseError, sqlite3.Error) as e:
            raise DataAccessError(f"Failed to list users: {e}") from e
        return [self._row_to_user(row) for row in rows]

    def get_user_insights(self, user_id: str) -> UserInsights | None:
        """Get the persisted insight profile of a user, if one was ever written."""
        user = self.get_user(user_id)
        return user.insights if user else None

    def update_user_insights(self, user_id: str, insights: UserInsights) -> None:
        """Overwrite the four insight fields of a user profile.

        Only the insight columns are written; no other profile state is read or
        touched. The update is a single statement in its own transaction, so
        it either lands completely or not at all. Repeating it is harmless.

        Args:
            user_id: Profile to update.
            insights: New insight profile.

        Raises:
            PersistenceError: If the user is unknown or the write fails.
        """
        try:
            with self._db.transaction() as cursor:
                cursor.execute(
                    """
                    UPDATE users
                    SET top_performing_tags_json = ?,
                        improvement_area_tags_json = ?,
                        peak_productivity_time = ?,
                        habit_analysis = ?
                    WHERE id = ?
                    """,
                    (
                        json.dumps(insights.top_performing_tags),
                        json.dumps(insights.improvement_area_tags),
                        insights.peak_productivity_time,
                        insights.habit_analysis,
                        user_id,
                    ),
                )
                updated = cursor.rowcount
        except (DatabaseError, sqlite3.Error) as e:
            raise PersistenceError(f"Failed to update insights for user {user_id}: {e}") from e

        if updated == 0:
            raise PersistenceError(f"Unknown user: {user_id}")

    # Work sessions

    def save_session(self, session: WorkSession) -> None:
        """Save or replace a work session with its tags and intervals.

        Raises:
            PersistenceError: If the write fails, including when the owning
                user does not exist.
        """
        try:
            with self._db.transaction() as cursor:
                cursor.execute(
                    """
                    INSERT OR REPLACE INTO work_sessions (id, user_id, status, rating, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        session.id,
                        session.user_id,
                        session.status.value,
                        session.rating,
                        int(session.created_at.timestamp()),
                    ),
                )
                cursor.execute("DELETE FROM session_tags WHERE session_id = ?", (session.id,))
                cursor.executemany(
                    "INSERT INTO session_tags (session_id, tag, position) VALUES (?, ?, ?)",
                    [(session.id, tag, i) for i, tag in enumerate(session.tags)],
                )
                cursor.execute("DELETE FROM session_intervals WHERE session_id = ?", (session.id,))
                cursor.executemany(
                    """
                    INSERT INTO session_intervals (session_id, position, start_time, end_time)
                    VALUES (?, ?, ?, ?)
                    """,
                    [
                        (
                            session.id,
                            i,
                            interval.start_time.isoformat(),
                            interval.end_time.isoformat() if interval.end_time else None,
                        )
                        for i, interval in enumerate(session.intervals)
                    ],
                )
        except (DatabaseError, sqlite3.Error) as e:
            raise PersistenceError(f"Failed to save session {session.id}: {e}") from e

    def get_eligible_sessions(self, user_id: str) -> list[WorkSession]:
        """Get a user's completed sessions that carry a rating.

        Args:
            user_id: Owner of the sessions.

        Returns:
            Sessions ordered by creation time, each with its tags and intervals.

        Raises:
            DataAccessError: If the store cannot be read or a record is malformed.
        """
        eligible = (
            "SELECT id FROM work_sessions "
            "WHERE user_id = ? AND status = ? AND rating IS NOT NULL"
        )
        params = (user_id, SessionStatus.COMPLETED.value)

        try:
            session_rows = self._db.execute(
                f"""
                SELECT id, user_id, status, rating, created_at
                FROM work_sessions
                WHERE id IN ({eligible})
                ORDER BY created_at, id
                """,
                params,
            ).fetchall()

            tags: dict[str, list[str]] = defaultdict(list)
            for row in self._db.execute(
                f"""
                SELECT session_id, tag FROM session_tags
                WHERE session_id IN ({eligible})
                ORDER BY session_id, position
                """,
                params,
            ):
                tags[row["session_id"]].append(row["tag"])

            intervals: dict[str, list[dict]] = defaultdict(list)
            for row in self._db.execute(
                f"""
                SELECT session_id, start_time, end_time FROM session_intervals
                WHERE session_id IN ({eligible})
                ORDER BY session_id, position
                """,
                params,
            ):
                intervals[row["session_id"]].append(
                    {"start_time": row["start_time"], "end_time": row["end_time"]}
                )
        except (DatabaseError, sqlite3.Error) as e:
            raise DataAccessError(f"Failed to read sessions for user {user_id}: {e}") from e

        try:
            return [
                WorkSession(
                    id=row["id"],
                    user_id=row["user_id"],
                    status=row["status"],
                    rating=row["rating"],
                    tags=tags.get(row["id"], []),
                    intervals=[Interval(**i) for i in intervals.get(row["id"], [])],
                    created_at=datetime.fromtimestamp(row["created_at"], tz=timezone.utc),
                )
                for row in session_rows
            ]
        except ValidationError as e:
            raise DataAccessError(f"Malformed session record for user {user_id}: {e}") from e

    def count_sessions(self, user_id: str | None = None) -> int:
        """Count stored sessions, optionally for one user."""
        if user_id is None:
            row = self._db.execute("SELECT COUNT(*) AS count FROM work_sessions").fetchone()
        else:
            row = self._db.execute(
                "SELECT COUNT(*) AS count FROM work_sessions WHERE user_id = ?", (user_id,)
            ).fetchone()
        return row["count"] if row else 0

    def _row_to_user(self, row: sqlite3.Row) -> User:
        """Convert a users row to a User, decoding the insight columns."""
        insights = None
        if row["habit_analysis"] is not None:
            try:
                insights = UserInsights(
                    top_performing_tags=json.loads(row["top_performing_tags_json"] or "[]"),
                    improvement_area_tags=json.loads(row["improvement_area_tags_json"] or "[]"),
                    peak_productivity_time=row["peak_productivity_time"],
                    habit_analysis=row["habit_analysis"],
                )
            except (json.JSONDecodeError, ValidationError) as e:
                raise DataAccessError(f"Malformed insights for user {row['id']}: {e}") from e

        return User(
            id=row["id"],
            name=row["name"],
            created_at=datetime.fromtimestamp(row["created_at"], tz=timezone.utc),
            insights=insights,
        )
