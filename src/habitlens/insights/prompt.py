"""Coaching prompt sent to the text-generation backend."""

from __future__ import annotations

from habitlens.models import AnalysisSummary

EMPTY_PLACEHOLDER = "None yet"

COACH_PROMPT_TEMPLATE = """You are a friendly and encouraging productivity coach. Based on the following user data, provide a short, actionable insight (2-3 sentences).

Data:
- User's best performing task types (highest rated): {top_tags}
- Task types the user finds challenging (lowest rated): {improvement_tags}
- The user's most productive time of day (highest rated sessions): {peak_time}

Analyze this data and give the user one key insight. For example, if they do well on 'Coding' in the morning, encourage that. If they struggle with 'Meetings' in the afternoon, suggest a different approach. Be positive and helpful.
"""


def _join_tags(tags: list[str]) -> str:
    return ", ".join(tags) or EMPTY_PLACEHOLDER


def render_coaching_prompt(summary: AnalysisSummary) -> str:
    """Fill the coaching template with an analysis summary.

    Empty tag lists render as "None yet".
    """
    return COACH_PROMPT_TEMPLATE.format(
        top_tags=_join_tags(summary.top_performing_tags),
        improvement_tags=_join_tags(summary.improvement_area_tags),
        peak_time=summary.peak_productivity_time,
    )
