"""Analytics over a user's completed, rated work sessions."""

from habitlens.analytics.peak_time import (
    TIME_BLOCK_RANGES,
    PeakTimeAnalyzer,
    accumulate_blocks,
    block_averages,
    classify_hour,
    find_peak_block,
)
from habitlens.analytics.tags import (
    TagPerformanceAnalyzer,
    compute_tag_stats,
    rank_tags,
    split_ranking,
)

__all__ = [
    # Tags
    "TagPerformanceAnalyzer",
    "compute_tag_stats",
    "rank_tags",
    "split_ranking",
    # Peak time
    "PeakTimeAnalyzer",
    "TIME_BLOCK_RANGES",
    "classify_hour",
    "accumulate_blocks",
    "find_peak_block",
    "block_averages",
]
