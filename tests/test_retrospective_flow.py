from __future__ import annotations

import json

import pytest

from taskmaster.flows.base import StructuredPromptFlow
from taskmaster.flows.retrospective import RetrospectiveGeneratorFlow
from taskmaster.flows.risk_analysis import RiskAnalysisFlow
from taskmaster.flows.scope_creep import ScopeCreepDetectorFlow
from taskmaster.flows.sprint_planner import SprintPlannerFlow
from taskmaster.flows.states import FlowOutcome


TASKS_JSON = json.dumps(
    [
        {"id": "1", "title": "Checkout API", "status": "Done", "priority": "High"},
        {"id": "2", "title": "Payment retries", "status": "In Progress", "priority": "Critical"},
    ]
)

RETRO = {
    "sprint_summary": "Most committed work shipped; payment retries slipped.",
    "what_went_well": ["Checkout API shipped early."],
    "what_could_be_improved": ["Critical work left In Progress."],
    "action_items": ["Pair on payment retries in the first two days."],
}


def test_retrospective_succeeds_with_only_tasks(make_openai) -> None:
    fake_openai = make_openai(json.dumps(RETRO))
    flow = RetrospectiveGeneratorFlow(openai_client=fake_openai)

    result = flow.run({"tasks_json": TASKS_JSON, "sprint_goal": "", "team_sentiment": None})

    assert result.ok
    assert result.output.action_items == ["Pair on payment retries in the first two days."]
    prompt = fake_openai.completions.last_prompt()
    assert "Sprint Goal:\n" not in prompt
    assert "Team Sentiment:\n" not in prompt
    assert "Additional Notes:\n" not in prompt


def test_retrospective_renders_every_optional_section(make_openai) -> None:
    fake_openai = make_openai(json.dumps(RETRO))
    flow = RetrospectiveGeneratorFlow(openai_client=fake_openai)

    flow.run(
        {
            "tasks_json": TASKS_JSON,
            "sprint_goal": "Launch checkout",
            "team_sentiment": "Unexpected server outage caused frustration",
            "additional_notes": "Vendor API changed mid-sprint",
        }
    )

    prompt = fake_openai.completions.last_prompt()
    assert "Sprint Goal:\nLaunch checkout" in prompt
    assert "Team Sentiment:\nUnexpected server outage caused frustration" in prompt
    assert "Additional Notes:\nVendor API changed mid-sprint" in prompt


def test_empty_task_array_is_accepted(make_openai) -> None:
    flow = RetrospectiveGeneratorFlow(openai_client=make_openai(json.dumps(RETRO)))
    assert flow.run({"tasks_json": "[]", "additional_notes": "Holiday week"}).ok


def test_list_fields_are_required(make_openai) -> None:
    reply = json.dumps({key: value for key, value in RETRO.items() if key != "action_items"})
    flow = RetrospectiveGeneratorFlow(openai_client=make_openai(reply))

    result = flow.run({"tasks_json": TASKS_JSON})

    assert result.outcome == FlowOutcome.INVALID_OUTPUT
    assert [error.field for error in result.field_errors] == ["action_items"]


@pytest.mark.parametrize(
    "flow_class",
    [SprintPlannerFlow, ScopeCreepDetectorFlow, RiskAnalysisFlow, RetrospectiveGeneratorFlow],
)
def test_prompt_files_embed_output_schema(flow_class: type[StructuredPromptFlow]) -> None:
    flow = flow_class(openai_client=None)

    assert flow.system_msg
    assert "## User Message Template" not in flow.system_msg
    assert "{output_schema}" in flow.user_msg_template
    for field_name in flow.optional_sections:
        assert "{" + field_name + "}" in flow.user_msg_template
