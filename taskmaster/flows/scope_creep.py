from __future__ import annotations

from taskmaster.flows.base import StructuredPromptFlow
from taskmaster.flows.checks import enforce_creep_floor, newly_added_tasks
from taskmaster.schemas.scope_creep import ScopeCreepInput, ScopeCreepOutput


class ScopeCreepDetectorFlow(StructuredPromptFlow):
    name = "scope_creep_detector"
    label = "scope creep analysis"
    prompt_name = "scope_creep_detector"
    input_model = ScopeCreepInput
    output_model = ScopeCreepOutput
    optional_sections = {
        "original_tasks_text": "Original Sprint Tasks:\n{value}",
        "sprint_goal": "Sprint Goal:\n{value}",
    }

    def reconcile(self, flow_input: ScopeCreepInput, output: ScopeCreepOutput) -> ScopeCreepOutput:
        added = newly_added_tasks(flow_input.current_tasks_text, flow_input.original_tasks_text)
        return enforce_creep_floor(output, added)
