from __future__ import annotations

from taskmaster.pages.base import ReportPage
from taskmaster.schemas.scope_creep import ScopeCreepOutput
from taskmaster.schemas.task import ACTIVE_TASK_STATUSES, Task


class ScopeCreepDetectorPage(ReportPage):
    title = "AI Scope Creep Detector"
    tasks_field = "current_tasks_text"
    default_form = {"current_tasks_text": "", "original_tasks_text": "", "sprint_goal": ""}
    success_title = "Analysis Complete!"
    success_description = "The AI has analyzed your sprint scope."
    loaded_description = "Active tasks (To Do, In Progress, In Review) from your project loaded."
    none_selected_title = "No Active Tasks"
    none_selected_description = "No tasks found in 'To Do', 'In Progress', or 'In Review' for the active project."

    def select_tasks(self, tasks: list[Task]) -> list[Task]:
        return [task for task in tasks if task.status in ACTIVE_TASK_STATUSES]

    def format_tasks(self, tasks: list[Task]) -> str:
        lines = []
        for task in tasks:
            description = f" - {task.description}" if task.description else ""
            lines.append(f"{task.title}{description} (Status: {task.status})")
        return "\n".join(lines)

    def render_output(self, output: ScopeCreepOutput) -> str:
        parts = [f"**Creep Level:** {output.creep_level}", "", output.analysis_report.strip()]
        if output.recommendations:
            parts.extend(["", "## Recommendations", output.recommendations.strip()])
        return "\n".join(parts)
