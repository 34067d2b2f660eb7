from __future__ import annotations

import json

from taskmaster.flows.checks import newly_added_tasks
from taskmaster.flows.scope_creep import ScopeCreepDetectorFlow
from taskmaster.flows.states import FlowOutcome
from taskmaster.schemas.scope_creep import ScopeCreepInput


def _reply(creep_level: str) -> str:
    return json.dumps({"analysis_report": "## Newly Added Tasks\n- Add dark mode", "creep_level": creep_level})


def test_new_task_lines_never_yield_no_creep(make_openai) -> None:
    flow = ScopeCreepDetectorFlow(openai_client=make_openai(_reply("None")))

    result = flow.run(
        {
            "original_tasks_text": "Fix login bug\nWrite API docs",
            "current_tasks_text": "Fix login bug\nWrite API docs\nAdd dark mode",
        }
    )

    assert result.ok
    assert result.output.creep_level == "Low"


def test_model_level_is_kept_when_above_floor(make_openai) -> None:
    flow = ScopeCreepDetectorFlow(openai_client=make_openai(_reply("High")))

    result = flow.run({"original_tasks_text": "Fix login bug", "current_tasks_text": "Fix login bug\nAdd dark mode"})

    assert result.output.creep_level == "High"


def test_unchanged_scope_can_report_no_creep(make_openai) -> None:
    flow = ScopeCreepDetectorFlow(openai_client=make_openai(_reply("None")))

    result = flow.run({"original_tasks_text": "Fix login bug\nWrite API docs", "current_tasks_text": "Write API docs\nFix login bug"})

    assert result.output.creep_level == "None"


def test_without_baseline_model_level_is_used(make_openai) -> None:
    flow = ScopeCreepDetectorFlow(openai_client=make_openai(_reply("None")))

    result = flow.run({"current_tasks_text": "Fix login bug\nAdd dark mode"})

    assert result.output.creep_level == "None"


def test_newly_added_tasks_ignores_bullets_case_and_duplicates() -> None:
    added = newly_added_tasks(
        "- Fix login bug\nADD DARK MODE\nAdd dark mode\n\nExport CSV",
        "fix login bug",
    )
    assert added == ["ADD DARK MODE", "Export CSV"]
    assert newly_added_tasks("Fix login bug", None) == []


def test_optional_sections_only_rendered_when_present() -> None:
    flow = ScopeCreepDetectorFlow(openai_client=None)

    bare = flow.render_prompt(ScopeCreepInput(current_tasks_text="Fix login bug"))
    full = flow.render_prompt(
        ScopeCreepInput(
            current_tasks_text="Fix login bug\nAdd dark mode",
            original_tasks_text="Fix login bug",
            sprint_goal="Stabilise auth",
        )
    )

    assert "Current Sprint Tasks:\nFix login bug" in bare
    assert "Original Sprint Tasks:\n" not in bare
    assert "Sprint Goal:\n" not in bare
    assert "Original Sprint Tasks:\nFix login bug" in full
    assert "Sprint Goal:\nStabilise auth" in full


def test_empty_current_tasks_is_rejected(make_openai) -> None:
    fake_openai = make_openai(_reply("Low"))
    flow = ScopeCreepDetectorFlow(openai_client=fake_openai)

    result = flow.run({"current_tasks_text": "", "original_tasks_text": "Fix login bug"})

    assert result.outcome == FlowOutcome.INVALID_INPUT
    assert result.message == "Current sprint tasks cannot be empty."
    assert fake_openai.completions.calls == 0
