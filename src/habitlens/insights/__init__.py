"""Coaching insight generation."""

from habitlens.insights.llm import (
    CliTextGenerator,
    CollaboratorError,
    TextGenerator,
    detect_available_backend,
    run_llm_prompt,
)
from habitlens.insights.orchestrator import InsightOrchestrator, InsightRun, RunStage
from habitlens.insights.prompt import (
    COACH_PROMPT_TEMPLATE,
    EMPTY_PLACEHOLDER,
    render_coaching_prompt,
)

__all__ = [
    "InsightOrchestrator",
    "InsightRun",
    "RunStage",
    # Prompt
    "COACH_PROMPT_TEMPLATE",
    "EMPTY_PLACEHOLDER",
    "render_coaching_prompt",
    # Text generation
    "TextGenerator",
    "CliTextGenerator",
    "CollaboratorError",
    "detect_available_backend",
    "run_llm_prompt",
]
