from __future__ import annotations

import json

from taskmaster.pages.base import ReportPage, bullet_list
from taskmaster.schemas.risk_analysis import RiskAnalysisOutput
from taskmaster.schemas.task import ACTIVE_TASK_STATUSES, Task


class RiskAnalysisPage(ReportPage):
    title = "AI Sprint Risk Analysis"
    tasks_field = "tasks_json"
    default_form = {"tasks_json": "", "team_context": ""}
    success_title = "Risk Analysis Complete!"
    success_description = "The AI has assessed your sprint risks."
    loaded_description = "Active tasks (To Do, In Progress, In Review) from your project loaded as JSON."
    none_selected_title = "No Active Tasks"
    none_selected_description = "No tasks found in 'To Do', 'In Progress', or 'In Review' for the active project."

    def select_tasks(self, tasks: list[Task]) -> list[Task]:
        return [task for task in tasks if task.status in ACTIVE_TASK_STATUSES]

    def format_tasks(self, tasks: list[Task]) -> str:
        records = [
            {
                "id": task.id,
                "title": task.title,
                "status": task.status,
                "assignee": task.assignee,
                "priority": task.priority,
                "effort": task.effort,
            }
            for task in tasks
        ]
        return json.dumps(records, indent=2)

    def render_output(self, output: RiskAnalysisOutput) -> str:
        parts = ["## Overall Assessment", output.overall_assessment.strip(), "", "## Team Member Risks"]
        if not output.member_risk_analysis:
            parts.append("- None")
        for member in output.member_risk_analysis:
            parts.append(f"### {member.member_id_or_name} ({member.risk_level})")
            parts.append(bullet_list(member.risk_factors))
            if member.relevant_tasks_summary:
                key_tasks = ", ".join(f"{t.title} ({t.priority or 'N/A'})" for t in member.relevant_tasks_summary)
                parts.append(f"Key Tasks: {key_tasks}")
        parts.extend(["", "## Task Risks"])
        if not output.task_risk_analysis:
            parts.append("- None")
        for task in output.task_risk_analysis:
            parts.append(f"### {task.task_title} [{task.task_id}] ({task.risk_level})")
            parts.append(bullet_list(task.risk_factors))
        parts.extend(["", "## Recommendations", bullet_list(output.recommendations)])
        return "\n".join(parts)
