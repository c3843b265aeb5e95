"""Storage layer for users, work sessions and insight profiles."""

from habitlens.storage.db import Database, DatabaseError
from habitlens.storage.store import (
    DataAccessError,
    HabitStore,
    PersistenceError,
    StoreError,
)

__all__ = [
    "HabitStore",
    "Database",
    "DatabaseError",
    "StoreError",
    "DataAccessError",
    "PersistenceError",
]
