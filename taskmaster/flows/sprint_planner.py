from __future__ import annotations

import logging

from taskmaster.flows.base import StructuredPromptFlow
from taskmaster.schemas.sprint_plan import SprintPlanInput, SprintPlanOutput


logger = logging.getLogger(__name__)

SPRINT_PLAN_HEADING = "## Sprint Plan"
DEFERRED_TASKS_HEADING = "## Deferred Tasks"
WARNINGS_HEADING = "## Warnings & Suggestions"


def deduplicate_tasks(tasks_text: str) -> str:
    """Trim each line, drop blank and exact-duplicate lines, keep first-seen order."""
    seen: set[str] = set()
    lines: list[str] = []
    for line in tasks_text.split("\n"):
        line = line.strip()
        if not line or line in seen:
            continue
        seen.add(line)
        lines.append(line)
    return "\n".join(lines)


class SprintPlannerFlow(StructuredPromptFlow):
    name = "sprint_planner"
    label = "sprint plan"
    prompt_name = "sprint_planner"
    input_model = SprintPlanInput
    output_model = SprintPlanOutput
    optional_sections = {
        "sprint_duration": "- Sprint Duration: {value}",
        "team_size": "- Team Size: {value}",
        "team_story_point_capacity": "- Team Capacity: {value} story points per sprint",
        "sprint_goal": "- Sprint Goal: {value}",
    }
    required_markers = {"sprint_plan": [SPRINT_PLAN_HEADING, DEFERRED_TASKS_HEADING]}

    def prepare_input(self, flow_input: SprintPlanInput) -> SprintPlanInput:
        deduplicated = deduplicate_tasks(flow_input.tasks_text)
        if deduplicated != flow_input.tasks_text:
            logger.debug("Collapsed duplicate task lines before prompting")
        return flow_input.model_copy(update={"tasks_text": deduplicated})
