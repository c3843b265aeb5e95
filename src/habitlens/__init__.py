"""
habitlens - Habit insights from rated work sessions

Ranks a user's session tags by rating, finds their most productive time of
day, and turns both into a short coaching insight stored on their profile.
"""

__version__ = "0.1.0"

from habitlens.models import (
    NOT_ENOUGH_DATA,
    AnalysisSummary,
    Interval,
    SessionStatus,
    TagStat,
    TimeBlock,
    User,
    UserInsights,
    WorkSession,
)
from habitlens.storage import DataAccessError, HabitStore, PersistenceError
from habitlens.analytics import PeakTimeAnalyzer, TagPerformanceAnalyzer
from habitlens.insights import CliTextGenerator, CollaboratorError, InsightOrchestrator, InsightRun

__all__ = [
    "__version__",
    # Models
    "WorkSession",
    "Interval",
    "SessionStatus",
    "TagStat",
    "TimeBlock",
    "AnalysisSummary",
    "UserInsights",
    "User",
    "NOT_ENOUGH_DATA",
    # Storage
    "HabitStore",
    "DataAccessError",
    "PersistenceError",
    # Analytics
    "TagPerformanceAnalyzer",
    "PeakTimeAnalyzer",
    # Insights
    "InsightOrchestrator",
    "InsightRun",
    "CliTextGenerator",
    "CollaboratorError",
]
