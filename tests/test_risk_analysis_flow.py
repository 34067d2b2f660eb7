from __future__ import annotations

import json

from taskmaster.flows.checks import parse_risk_tasks, unassigned_priority_tasks
from taskmaster.flows.risk_analysis import RiskAnalysisFlow
from taskmaster.flows.states import FlowOutcome


UNASSIGNED_CRITICAL = '[{"id":"1","title":"T1","status":"To Do","priority":"Critical"}]'


def _reply(**overrides) -> str:  # noqa: ANN003
    payload = {
        "member_risk_analysis": [],
        "task_risk_analysis": [],
        "overall_assessment": "Low overall risk.",
        "recommendations": ["Assign an owner to every critical task."],
    }
    payload.update(overrides)
    return json.dumps(payload)


def test_unassigned_critical_task_is_flagged_without_team_context(make_openai) -> None:
    fake_openai = make_openai(_reply())
    flow = RiskAnalysisFlow(openai_client=fake_openai)

    result = flow.run({"tasks_json": UNASSIGNED_CRITICAL})

    assert result.ok
    assert "Team Context:" not in fake_openai.completions.last_prompt()
    flagged = {risk.task_id: risk for risk in result.output.task_risk_analysis}
    assert flagged["1"].risk_level in {"High", "Critical"}
    assert flagged["1"].task_title == "T1"
    assert flagged["1"].risk_factors == ["No assignee for critical priority task"]


def test_understated_task_risk_is_raised(make_openai) -> None:
    reply = _reply(
        task_risk_analysis=[
            {"task_id": "1", "task_title": "T1", "risk_level": "Low", "risk_factors": ["Small scope"]},
        ]
    )
    flow = RiskAnalysisFlow(openai_client=make_openai(reply))

    result = flow.run({"tasks_json": UNASSIGNED_CRITICAL, "team_context": "Team of 2 developers"})

    [risk] = result.output.task_risk_analysis
    assert risk.risk_level == "Critical"
    assert risk.risk_factors == ["Small scope", "No assignee for critical priority task"]


def test_model_assessment_is_kept_when_already_elevated(make_openai) -> None:
    reply = _reply(
        task_risk_analysis=[
            {"task_id": "1", "task_title": "T1", "risk_level": "Critical", "risk_factors": ["Nobody owns it"]},
        ]
    )
    flow = RiskAnalysisFlow(openai_client=make_openai(reply))

    result = flow.run({"tasks_json": UNASSIGNED_CRITICAL})

    [risk] = result.output.task_risk_analysis
    assert risk.risk_factors == ["Nobody owns it"]


def test_assigned_and_done_tasks_are_not_flagged() -> None:
    tasks = parse_risk_tasks(
        json.dumps(
            [
                {"id": "1", "title": "Owned", "status": "To Do", "priority": "Critical", "assignee": "AB"},
                {"id": "2", "title": "Shipped", "status": "Done", "priority": "High"},
                {"id": 3, "title": "Open", "status": "In Progress", "priority": "High", "assignee": ""},
                {"id": "4", "title": "Minor", "status": "To Do", "priority": "Low"},
                {"title": "No id"},
                "not a task",
            ]
        )
    )

    assert [task.id for task in tasks] == ["1", "2", "3", "4"]
    assert [task.id for task in unassigned_priority_tasks(tasks)] == ["3"]


def test_team_context_is_rendered_when_present(make_openai) -> None:
    fake_openai = make_openai(_reply())
    flow = RiskAnalysisFlow(openai_client=fake_openai)

    flow.run({"tasks_json": UNASSIGNED_CRITICAL, "team_context": "Team of 5 developers, 2-week sprint"})

    prompt = fake_openai.completions.last_prompt()
    assert "Team Context:\nTeam of 5 developers, 2-week sprint" in prompt
    assert f"Tasks JSON:\n{UNASSIGNED_CRITICAL}" in prompt


def test_tasks_json_must_be_a_json_array(make_openai) -> None:
    fake_openai = make_openai(_reply())
    flow = RiskAnalysisFlow(openai_client=fake_openai)

    not_json = flow.run({"tasks_json": "Fix bug"})
    not_array = flow.run({"tasks_json": '{"id": "1"}'})

    assert not_json.outcome == FlowOutcome.INVALID_INPUT
    assert "not valid JSON" in not_json.message
    assert not_array.message == "Tasks JSON must be an array."
    assert fake_openai.completions.calls == 0


def test_unknown_risk_level_is_invalid_output(make_openai) -> None:
    reply = _reply(
        member_risk_analysis=[
            {
                "member_id_or_name": "AB",
                "risk_level": "Severe",
                "risk_factors": ["3 Critical tasks assigned"],
                "relevant_tasks_summary": [],
            }
        ]
    )
    flow = RiskAnalysisFlow(openai_client=make_openai(reply))

    result = flow.run({"tasks_json": UNASSIGNED_CRITICAL})

    assert result.outcome == FlowOutcome.INVALID_OUTPUT
    assert result.output is None
