"""Tag performance ranking.

Groups a user's completed, rated sessions by tag and ranks tags by their
average rating. A session carrying several tags counts once toward each of
them. Tags seen fewer than ``min_samples`` times are left out so a single
lucky or unlucky session cannot dominate the ranking.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Iterable

from habitlens.models import TagPerformance, TagStat

if TYPE_CHECKING:
    from habitlens.models import WorkSession
    from habitlens.storage import HabitStore

logger = logging.getLogger(__name__)

DEFAULT_MIN_SAMPLES = 3
DEFAULT_MAX_TAGS = 3


def compute_tag_stats(sessions: Iterable[WorkSession]) -> list[TagStat]:
    """Average rating and sample count per tag, unfiltered and unsorted.

    Sessions without a rating are ignored.
    """
    totals: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)

    for session in sessions:
        if session.rating is None:
            continue
        for tag in session.tags:
            totals[tag] += session.rating
            counts[tag] += 1

    return [
        TagStat(tag=tag, average_rating=totals[tag] / counts[tag], sample_count=counts[tag])
        for tag in counts
    ]


def rank_tags(
    sessions: Iterable[WorkSession],
    min_samples: int = DEFAULT_MIN_SAMPLES,
) -> list[TagStat]:
    """Rank tags by average rating, best first.

    Args:
        sessions: Eligible sessions of a single user.
        min_samples: Minimum number of sessions a tag needs to be ranked.

    Returns:
        TagStats sorted by average rating descending, ties broken by tag name.
    """
    stats = [s for s in compute_tag_stats(sessions) if s.sample_count >= min_samples]
    stats.sort(key=lambda s: (-s.average_rating, s.tag))
    return stats


def split_ranking(ranked: list[TagStat], max_tags: int = DEFAULT_MAX_TAGS) -> TagPerformance:
    """Pick the strongest and weakest tags from a ranking.

    The weakest list is read from the bottom of the ranking upward, so its
    first element is the single worst tag. With few ranked tags the two lists
    overlap.
    """
    names = [s.tag for s in ranked]
    return TagPerformance(
        top_performing_tags=names[:max_tags],
        improvement_area_tags=list(reversed(names[-max_tags:])),
    )


class TagPerformanceAnalyzer:
    """Finds a user's best and worst performing tags."""

    def __init__(
        self,
        store: HabitStore,
        min_samples: int = DEFAULT_MIN_SAMPLES,
        max_tags: int = DEFAULT_MAX_TAGS,
    ) -> None:
        self.store = store
        self.min_samples = min_samples
        self.max_tags = max_tags

    def ranked_tags(self, user_id: str) -> list[TagStat]:
        sessions = self.store.get_eligible_sessions(user_id)
        return rank_tags(sessions, self.min_samples)

    def analyze(self, user_id: str) -> TagPerformance:
        """Rank the user's tags and return the top and bottom of the ranking.

        Raises:
            DataAccessError: If the user's sessions cannot be read.
        """
        ranked = self.ranked_tags(user_id)
        logger.debug("User %s: %d tag(s) above the sample floor", user_id, len(ranked))
        return split_ranking(ranked, self.max_tags)
