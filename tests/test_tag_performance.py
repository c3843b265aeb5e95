"""Tests for tag performance ranking."""

import pytest

from habitlens.analytics.tags import (
    TagPerformanceAnalyzer,
    compute_tag_stats,
    rank_tags,
    split_ranking,
)
from habitlens.models import SessionStatus
from habitlens.storage import DataAccessError


def _rated(make_session, tag: str, ratings: list[float]):
    return [make_session(rating=r, tags=[tag]) for r in ratings]


class TestComputeTagStats:
    """Tests for compute_tag_stats."""

    def test_multi_tag_session_counts_for_each_tag(self, make_session):
        sessions = [make_session(rating=4, tags=["coding", "review"])]
        stats = {s.tag: s for s in compute_tag_stats(sessions)}
        assert stats["coding"].sample_count == 1
        assert stats["review"].sample_count == 1
        assert stats["review"].average_rating == 4

    def test_unrated_sessions_ignored(self, make_session):
        sessions = [make_session(rating=None, tags=["coding"]), make_session(rating=2, tags=["coding"])]
        [stat] = compute_tag_stats(sessions)
        assert stat.sample_count == 1
        assert stat.average_rating == 2

    def test_untagged_sessions_contribute_nothing(self, make_session):
        assert compute_tag_stats([make_session(tags=[])]) == []


class TestRankTags:
    """Tests for rank_tags."""

    def test_sample_floor(self, make_session):
        sessions = _rated(make_session, "coding", [5, 4, 5]) + _rated(make_session, "meetings", [1, 1])
        ranked = rank_tags(sessions)
        assert [s.tag for s in ranked] == ["coding"]
        assert ranked[0].sample_count == 3
        assert ranked[0].average_rating == pytest.approx(14 / 3)

    def test_sorted_by_average_descending(self, make_session):
        sessions = (
            _rated(make_session, "writing", [3, 3, 3])
            + _rated(make_session, "coding", [5, 5, 4])
            + _rated(make_session, "email", [1, 2, 1])
        )
        assert [s.tag for s in rank_tags(sessions)] == ["coding", "writing", "email"]

    def test_ties_broken_by_name(self, make_session):
        sessions = _rated(make_session, "zeta", [4, 4, 4]) + _rated(make_session, "alpha", [4, 4, 4])
        assert [s.tag for s in rank_tags(sessions)] == ["alpha", "zeta"]

    def test_custom_floor(self, make_session):
        sessions = _rated(make_session, "solo", [5])
        assert [s.tag for s in rank_tags(sessions, min_samples=1)] == ["solo"]
        assert rank_tags(sessions) == []


class TestSplitRanking:
    """Tests for split_ranking."""

    def test_top_and_bottom_three(self, make_session):
        ratings = {"a": 5.0, "b": 4.5, "c": 4.0, "d": 3.0, "e": 2.0, "f": 1.0}
        sessions = [make_session(rating=r, tags=[t]) for t, r in ratings.items() for _ in range(3)]
        result = split_ranking(rank_tags(sessions))
        assert result.top_performing_tags == ["a", "b", "c"]
        assert result.improvement_area_tags == ["f", "e", "d"]

    def test_overlap_with_few_tags(self, make_session):
        sessions = _rated(make_session, "good", [5, 5, 5]) + _rated(make_session, "bad", [1, 2, 1])
        result = split_ranking(rank_tags(sessions))
        assert result.top_performing_tags == ["good", "bad"]
        assert result.improvement_area_tags == ["bad", "good"]

    def test_empty_ranking(self):
        result = split_ranking([])
        assert result.top_performing_tags == []
        assert result.improvement_area_tags == []


class TestTagPerformanceAnalyzer:
    """Tests for TagPerformanceAnalyzer against a real store."""

    def test_single_qualifying_tag(self, habit_store, user, make_session):
        """Three coding sessions qualify, a single meetings session does not."""
        for tag, rating in [("coding", 5), ("coding", 4), ("coding", 5), ("meetings", 2)]:
            habit_store.save_session(make_session(rating=rating, tags=[tag]))

        result = TagPerformanceAnalyzer(habit_store).analyze("user-1")
        assert result.top_performing_tags == ["coding"]
        assert result.improvement_area_tags == ["coding"]
        assert "meetings" not in result.improvement_area_tags

    def test_only_eligible_sessions_count(self, habit_store, user, make_session):
        habit_store.save_session(make_session(rating=5, tags=["coding"]))
        habit_store.save_session(make_session(rating=5, tags=["coding"]))
        habit_store.save_session(make_session(rating=5, tags=["coding"], status=SessionStatus.ABANDONED))
        habit_store.save_session(make_session(rating=None, tags=["coding"]))

        result = TagPerformanceAnalyzer(habit_store).analyze("user-1")
        assert result.top_performing_tags == []
        assert result.improvement_area_tags == []

    def test_no_sessions(self, habit_store, user):
        result = TagPerformanceAnalyzer(habit_store).analyze("user-1")
        assert result.top_performing_tags == []
        assert result.improvement_area_tags == []

    def test_max_tags(self, habit_store, user, make_session):
        for tag, rating in [("a", 5), ("b", 4), ("c", 3), ("d", 2)]:
            for _ in range(3):
                habit_store.save_session(make_session(rating=rating, tags=[tag]))

        result = TagPerformanceAnalyzer(habit_store, max_tags=2).analyze("user-1")
        assert result.top_performing_tags == ["a", "b"]
        assert result.improvement_area_tags == ["d", "c"]

    def test_store_errors_propagate(self):
        class BrokenStore:
            def get_eligible_sessions(self, user_id):
                raise DataAccessError("offline")

        with pytest.raises(DataAccessError):
            TagPerformanceAnalyzer(BrokenStore()).analyze("user-1")
