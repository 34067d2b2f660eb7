from __future__ import annotations

import json

from taskmaster.pages.base import ReportPage, bullet_list
from taskmaster.schemas.retrospective import RetrospectiveOutput
from taskmaster.schemas.task import Task


class RetrospectiveGeneratorPage(ReportPage):
    title = "AI Sprint Retrospective"
    tasks_field = "tasks_json"
    default_form = {"tasks_json": "", "sprint_goal": "", "team_sentiment": "", "additional_notes": ""}
    success_title = "Retrospective Generated!"
    success_description = "The AI has prepared your sprint retrospective."
    loaded_description = "All tasks from your active project loaded as JSON. Edit as needed for your sprint retrospective."

    def format_tasks(self, tasks: list[Task]) -> str:
        records = [
            {
                "id": task.id,
                "title": task.title,
                "description": task.description,
                "status": task.status,
                "category": task.category,
                "assignee": task.assignee,
                "priority": task.priority,
                "effort": task.effort,
                "createdAt": task.created_at.isoformat() if task.created_at else None,
            }
            for task in tasks
        ]
        return json.dumps(records, indent=2)

    def render_output(self, output: RetrospectiveOutput) -> str:
        return "\n".join(
            [
                "## Sprint Summary",
                output.sprint_summary.strip(),
                "",
                "## What Went Well",
                bullet_list(output.what_went_well),
                "",
                "## What Could Be Improved",
                bullet_list(output.what_could_be_improved),
                "",
                "## Action Items",
                bullet_list(output.action_items),
            ]
        )
