"""Time-of-day productivity bucketing.

Each completed, rated session is placed in one of four day segments by the
hour its first interval started. The segment with the highest average rating
is the user's peak productivity time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from habitlens.models import NOT_ENOUGH_DATA, BlockStat, PeakTime, TimeBlock

if TYPE_CHECKING:
    from habitlens.models import WorkSession
    from habitlens.storage import HabitStore

logger = logging.getLogger(__name__)

# Half-open [lower, upper) hour ranges, tested in order. Hours matching none
# of them (22-23 and 0-5) belong to the night.
TIME_BLOCK_RANGES: list[tuple[int, int, TimeBlock]] = [
    (6, 12, TimeBlock.MORNING),
    (12, 17, TimeBlock.AFTERNOON),
    (17, 22, TimeBlock.EVENING),
]


def classify_hour(hour: int) -> TimeBlock:
    """Map an hour of day (0-23) to its time block."""
    for lower, upper, block in TIME_BLOCK_RANGES:
        if lower <= hour < upper:
            return block
    return TimeBlock.NIGHT


def accumulate_blocks(sessions: Iterable[WorkSession]) -> dict[TimeBlock, BlockStat]:
    """Sum ratings and count sessions per time block.

    Every block is present in the result, in enumeration order. Sessions
    without a rating or without any interval are skipped.
    """
    blocks = {block: BlockStat() for block in TimeBlock}

    for session in sessions:
        hour = session.start_hour
        if session.rating is None or hour is None:
            logger.debug("Skipping session %s: no rating or no interval", session.id)
            continue
        stat = blocks[classify_hour(hour)]
        stat.total_rating += session.rating
        stat.count += 1

    return blocks


def find_peak_block(blocks: dict[TimeBlock, BlockStat]) -> str:
    """Pick the block with the highest average rating.

    The running maximum starts at 0 and only a strictly greater average
    replaces it, so the earliest block wins ties and a block averaging 0 or
    less is never reported.

    Returns:
        The block label, or "Not enough data" if no block qualifies.
    """
    peak = NOT_ENOUGH_DATA
    max_avg = 0.0

    for block in TimeBlock:
        average = blocks[block].average
        if average is not None and average > max_avg:
            max_avg = average
            peak = block.value

    return peak


def block_averages(blocks: dict[TimeBlock, BlockStat]) -> dict[str, float | None]:
    """Average rating per block label, None for empty blocks."""
    return {block.value: blocks[block].average for block in TimeBlock}


class PeakTimeAnalyzer:
    """Finds the time of day a user rates their sessions highest."""

    def __init__(self, store: HabitStore) -> None:
        self.store = store

    def block_stats(self, user_id: str) -> dict[TimeBlock, BlockStat]:
        return accumulate_blocks(self.store.get_eligible_sessions(user_id))

    def analyze(self, user_id: str) -> PeakTime:
        """Find the user's peak productivity time block.

        Raises:
            DataAccessError: If the user's sessions cannot be read.
        """
        peak = find_peak_block(self.block_stats(user_id))
        logger.debug("User %s: peak productivity time is %s", user_id, peak)
        return PeakTime(peak_productivity_time=peak)
