from habitlens.insights.prompt import EMPTY_PLACEHOLDER, render_coaching_prompt
from habitlens.models import NOT_ENOUGH_DATA, AnalysisSummary


def test_prompt_lists_tags_and_peak_time():
    prompt = render_coaching_prompt(
        AnalysisSummary(
            top_performing_tags=["coding", "writing"],
            improvement_area_tags=["meetings"],
            peak_productivity_time="Morning (6am-12pm)",
        )
    )
    assert "(highest rated): coding, writing" in prompt
    assert "(lowest rated): meetings" in prompt
    assert "(highest rated sessions): Morning (6am-12pm)" in prompt
    assert "2-3 sentences" in prompt
    assert "Be positive and helpful." in prompt


def test_empty_lists_render_placeholder():
    prompt = render_coaching_prompt(AnalysisSummary())
    assert EMPTY_PLACEHOLDER == "None yet"
    assert "(highest rated): None yet" in prompt
    assert "(lowest rated): None yet" in prompt
    assert f"(highest rated sessions): {NOT_ENOUGH_DATA}" in prompt


def test_braces_in_tags_are_left_alone():
    prompt = render_coaching_prompt(AnalysisSummary(top_performing_tags=["{weird}"]))
    assert "{weird}" in prompt
