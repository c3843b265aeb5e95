import shutil
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from habitlens.config import _clear_config_cache
from habitlens.models import Interval, SessionStatus, WorkSession, generate_id
from habitlens.storage import HabitStore


@pytest.fixture(autouse=True)
def clear_config_cache():
    """Make sure no test sees a config cached by another."""
    _clear_config_cache()
    yield
    _clear_config_cache()


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def temp_db_path(temp_dir):
    """Create a temporary database path."""
    return temp_dir / "test_db.sqlite"


@pytest.fixture
def habit_store(temp_db_path):
    """Create a HabitStore with a temporary database."""
    store = HabitStore(db_path=temp_db_path)
    yield store
    store.close()


@pytest.fixture
def user(habit_store):
    """A stored user with id 'user-1'."""
    return habit_store.create_user("Test User", user_id="user-1")


def build_session(
    rating: float | None = 4,
    tags: tuple[str, ...] | list[str] = ("coding",),
    hour: int | None = 9,
    user_id: str = "user-1",
    status: SessionStatus = SessionStatus.COMPLETED,
    day: int = 0,
) -> WorkSession:
    """Build a work session whose first interval starts at ``hour``.

    ``hour=None`` builds a session without intervals.
    """
    base = datetime(2026, 3, 2) + timedelta(days=day)
    intervals = []
    if hour is not None:
        start = base.replace(hour=hour, minute=15)
        intervals.append(Interval(start_time=start, end_time=start + timedelta(minutes=50)))
    return WorkSession(
        id=generate_id(),
        user_id=user_id,
        status=status,
        rating=rating,
        tags=list(tags),
        intervals=intervals,
        created_at=base + timedelta(hours=23),
    )


@pytest.fixture
def make_session():
    """Factory fixture for WorkSession objects (see build_session)."""
    return build_session
