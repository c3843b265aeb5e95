"""Insight generation pipeline.

Runs both analyzers for a user, turns their output into a coaching prompt,
asks the text generator for an insight and writes the result onto the user's
profile. :meth:`InsightOrchestrator.run` reports what happened as an
:class:`InsightRun`; :meth:`InsightOrchestrator.run_for_user` is the
fire-and-forget entry point that logs failures and never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable

from habitlens.analytics.peak_time import PeakTimeAnalyzer
from habitlens.analytics.tags import TagPerformanceAnalyzer
from habitlens.insights.llm import CollaboratorError
from habitlens.insights.prompt import render_coaching_prompt
from habitlens.models import AnalysisSummary, UserInsights
from habitlens.storage import DataAccessError, PersistenceError

if TYPE_CHECKING:
    from habitlens.insights.llm import TextGenerator
    from habitlens.storage import HabitStore

logger = logging.getLogger(__name__)


class RunStage(str, Enum):
    """Pipeline stages, in execution order."""

    ANALYZE = "analyze"
    GENERATE = "generate"
    PERSIST = "persist"
    DONE = "done"


@dataclass
class InsightRun:
    """Outcome of one insight run for one user.

    ``stage`` is the last stage entered; on failure it names the stage that
    failed and ``error`` holds the exception. It is None when the failure
    was not one of the expected store or generator errors.
    """

    user_id: str
    stage: RunStage | None
    summary: AnalysisSummary | None = None
    prompt: str | None = None
    insights: UserInsights | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.stage == RunStage.DONE


class InsightOrchestrator:
    """Produces and persists a user's coaching insight.

    Args:
        store: Source of eligible sessions and target of the insight update.
        generate: Text generator called with the rendered prompt.
        tag_analyzer: Defaults to a TagPerformanceAnalyzer over ``store``.
        peak_analyzer: Defaults to a PeakTimeAnalyzer over ``store``.
    """

    def __init__(
        self,
        store: HabitStore,
        generate: TextGenerator,
        tag_analyzer: TagPerformanceAnalyzer | None = None,
        peak_analyzer: PeakTimeAnalyzer | None = None,
    ) -> None:
        self.store = store
        self.generate = generate
        self.tag_analyzer = tag_analyzer or TagPerformanceAnalyzer(store)
        self.peak_analyzer = peak_analyzer or PeakTimeAnalyzer(store)

    def summarize(self, user_id: str) -> AnalysisSummary:
        """Run both analyzers and combine their output.

        Raises:
            DataAccessError: If the user's sessions cannot be read.
        """
        tags = self.tag_analyzer.analyze(user_id)
        peak = self.peak_analyzer.analyze(user_id)
        return AnalysisSummary(
            top_performing_tags=tags.top_performing_tags,
            improvement_area_tags=tags.improvement_area_tags,
            peak_productivity_time=peak.peak_productivity_time,
        )

    def run(self, user_id: str) -> InsightRun:
        """Run the full pipeline for one user.

        Store and generator failures are caught and reported on the returned
        InsightRun. Nothing is written unless every earlier stage succeeded,
        and an unknown user fails during analysis, before the generator runs.
        """
        outcome = InsightRun(user_id=user_id, stage=RunStage.ANALYZE)
        try:
            if self.store.get_user(user_id) is None:
                raise DataAccessError(f"Unknown user: {user_id}")
            outcome.summary = self.summarize(user_id)

            outcome.stage = RunStage.GENERATE
            outcome.prompt = render_coaching_prompt(outcome.summary)
            habit_analysis = self.generate(outcome.prompt)

            outcome.stage = RunStage.PERSIST
            insights = UserInsights.from_summary(outcome.summary, habit_analysis)
            self.store.update_user_insights(user_id, insights)
        except (DataAccessError, CollaboratorError, PersistenceError) as e:
            outcome.error = e
            logger.error(
                "Insight run for user %s failed during %s: %s",
                user_id,
                outcome.stage.value,
                e,
            )
            return outcome

        outcome.insights = insights
        outcome.stage = RunStage.DONE
        logger.info("Insight run for user %s completed", user_id)
        return outcome

    def run_for_user(self, user_id: str) -> None:
        """Fire-and-forget run: failures are logged and discarded."""
        try:
            self.run(user_id)
        except Exception:
            logger.exception("Unexpected error in insight run for user %s", user_id)

    def run_for_users(self, user_ids: Iterable[str]) -> dict[str, InsightRun]:
        """Run the pipeline for several users in turn.

        One user's failure never stops the others, including failures outside
        the store/generator error types.
        """
        results: dict[str, InsightRun] = {}
        for user_id in user_ids:
            try:
                results[user_id] = self.run(user_id)
            except Exception as e:
                logger.exception("Unexpected error in insight run for user %s", user_id)
                results[user_id] = InsightRun(user_id=user_id, stage=None, error=e)
        return results
