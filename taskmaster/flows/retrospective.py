from __future__ import annotations

from taskmaster.flows.base import StructuredPromptFlow
from taskmaster.schemas.retrospective import RetrospectiveInput, RetrospectiveOutput


class RetrospectiveGeneratorFlow(StructuredPromptFlow):
    name = "retrospective_generator"
    label = "sprint retrospective"
    prompt_name = "retrospective_generator"
    input_model = RetrospectiveInput
    output_model = RetrospectiveOutput
    optional_sections = {
        "sprint_goal": "Sprint Goal:\n{value}",
        "team_sentiment": "Team Sentiment:\n{value}",
        "additional_notes": "Additional Notes:\n{value}",
    }
