"""Data models for habitlens.

This module defines the work-session records read from the store, the
transient statistics the analyzers derive from them, and the insight profile
persisted back onto the user.
"""

import time
import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

NOT_ENOUGH_DATA = "Not enough data"


class SessionStatus(str, Enum):
    """Lifecycle states of a work session."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class TimeBlock(str, Enum):
    """Fixed day segments used to bucket session start times.

    Declaration order is the tie-break order for peak selection.
    """

    MORNING = "Morning (6am-12pm)"
    AFTERNOON = "Afternoon (12pm-5pm)"
    EVENING = "Evening (5pm-10pm)"
    NIGHT = "Night (10pm-6am)"


class Interval(BaseModel):
    """A contiguous stretch of work within a session."""

    start_time: datetime
    end_time: datetime | None = None  # None while the interval is still open


class WorkSession(BaseModel):
    """A single work session belonging to a user."""

    id: str
    user_id: str
    status: SessionStatus
    rating: float | None = None
    tags: list[str] = Field(default_factory=list)
    intervals: list[Interval] = Field(default_factory=list)
    created_at: datetime

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, tags: list[str]) -> list[str]:
        # Tags are a set; keep first-seen order for stable storage
        return list(dict.fromkeys(tag.strip() for tag in tags if tag.strip()))

    @property
    def start_hour(self) -> int | None:
        """Hour of day at which the first interval started, if any."""
        if not self.intervals:
            return None
        return self.intervals[0].start_time.hour


class TagStat(BaseModel):
    """Aggregated rating statistics for one tag."""

    tag: str
    average_rating: float
    sample_count: int


class BlockStat(BaseModel):
    """Running rating totals for one time block."""

    total_rating: float = 0.0
    count: int = 0

    @property
    def average(self) -> float | None:
        if self.count == 0:
            return None
        return self.total_rating / self.count


class TagPerformance(BaseModel):
    top_performing_tags: list[str] = Field(default_factory=list)
    improvement_area_tags: list[str] = Field(default_factory=list)


class PeakTime(BaseModel):
    peak_productivity_time: str = NOT_ENOUGH_DATA


class AnalysisSummary(BaseModel):
    """Combined analyzer output handed to the prompt renderer."""

    top_performing_tags: list[str] = Field(default_factory=list)
    improvement_area_tags: list[str] = Field(default_factory=list)
    peak_productivity_time: str = NOT_ENOUGH_DATA


class UserInsights(BaseModel):
    """The insight profile persisted on a user.

    Written wholesale by the insight orchestrator; never partially updated.
    """

    top_performing_tags: list[str] = Field(default_factory=list)
    improvement_area_tags: list[str] = Field(default_factory=list)
    peak_productivity_time: str = NOT_ENOUGH_DATA
    habit_analysis: str = ""

    @classmethod
    def from_summary(cls, summary: AnalysisSummary, habit_analysis: str) -> "UserInsights":
        return cls(
            top_performing_tags=list(summary.top_performing_tags),
            improvement_area_tags=list(summary.improvement_area_tags),
            peak_productivity_time=summary.peak_productivity_time,
            habit_analysis=habit_analysis,
        )


class User(BaseModel):
    """A user profile."""

    id: str
    name: str
    created_at: datetime
    insights: UserInsights | None = None


def generate_id() -> str:
    """Generate a UUID v7 (time-sortable) identifier.

    UUID v7 embeds a Unix timestamp in the first 48 bits, making IDs
    naturally sortable by creation time while maintaining uniqueness.

    Returns:
        A UUID v7 string in standard hyphenated format.
    """
    timestamp_ms = int(time.time() * 1000)
    random_bytes = uuid.uuid4().bytes

    uuid_bytes = bytearray(16)
    uuid_bytes[0] = (timestamp_ms >> 40) & 0xFF
    uuid_bytes[1] = (timestamp_ms >> 32) & 0xFF
    uuid_bytes[2] = (timestamp_ms >> 24) & 0xFF
    uuid_bytes[3] = (timestamp_ms >> 16) & 0xFF
    uuid_bytes[4] = (timestamp_ms >> 8) & 0xFF
    uuid_bytes[5] = timestamp_ms & 0xFF

    # version 7
    uuid_bytes[6] = 0x70 | (random_bytes[6] & 0x0F)
    uuid_bytes[7] = random_bytes[7]

    # variant 10
    uuid_bytes[8] = 0x80 | (random_bytes[8] & 0x3F)
    uuid_bytes[9:16] = random_bytes[9:16]

    return str(uuid.UUID(bytes=bytes(uuid_bytes)))
