from __future__ import annotations

import re

from taskmaster.flows.sprint_planner import WARNINGS_HEADING
from taskmaster.pages.base import ReportPage, bullet_list
from taskmaster.schemas.sprint_plan import SprintPlanOutput
from taskmaster.schemas.task import Task


def format_task_line(task: Task) -> str:
    title = task.title or "Untitled Task"
    priority = task.priority or "N/A"
    effort = task.effort or 0
    if isinstance(effort, float) and effort.is_integer():
        effort = int(effort)
    return f"{title} – {priority} – {effort}"


def parse_plan_section(plan_text: str, heading: str) -> list[str]:
    match = re.search(rf"## {re.escape(heading)}\s*([\s\S]*?)(?=##|$)", plan_text, re.IGNORECASE)
    if not match:
        return []
    return _items(match.group(1))


def parse_warnings(warnings_text: str | None) -> list[str]:
    if not warnings_text:
        return []
    return _items(re.sub(rf"{re.escape(WARNINGS_HEADING)}\s*", "", warnings_text, flags=re.IGNORECASE))


def _items(block: str) -> list[str]:
    items = [re.sub(r"^- ", "", line.strip()).strip() for line in block.strip().split("\n")]
    return [item for item in items if item]


class SprintPlannerPage(ReportPage):
    title = "AI Sprint Planner"
    tasks_field = "tasks_text"
    default_form = {
        "tasks_text": "",
        "sprint_duration": "2 weeks",
        "team_size": "3 developers",
        "team_story_point_capacity": None,
        "sprint_goal": "",
    }
    success_title = "Sprint Plan Suggested!"
    success_description = "The AI has generated a sprint plan for you."
    loaded_description = "'To Do' tasks from your active project have been loaded. Format: Title – Priority – Story Points."
    none_selected_title = "No 'To Do' Tasks"
    none_selected_description = "No tasks found in the 'To Do' column of your active project."

    def select_tasks(self, tasks: list[Task]) -> list[Task]:
        return [task for task in tasks if task.status == "To Do"]

    def format_tasks(self, tasks: list[Task]) -> str:
        return "\n".join(format_task_line(task) for task in tasks)

    def render_output(self, output: SprintPlanOutput) -> str:
        parts = [
            "## Sprint Plan",
            bullet_list(parse_plan_section(output.sprint_plan, "Sprint Plan")),
            "",
            "## Deferred Tasks",
            bullet_list(parse_plan_section(output.sprint_plan, "Deferred Tasks")),
        ]
        warnings = parse_warnings(output.warnings_or_suggestions)
        if warnings:
            parts.extend(["", WARNINGS_HEADING, bullet_list(warnings)])
        return "\n".join(parts)
