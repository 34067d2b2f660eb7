from __future__ import annotations

from taskmaster.flows.base import StructuredPromptFlow
from taskmaster.flows.checks import enforce_unassigned_task_risks, parse_risk_tasks
from taskmaster.schemas.risk_analysis import RiskAnalysisInput, RiskAnalysisOutput


class RiskAnalysisFlow(StructuredPromptFlow):
    name = "risk_analysis"
    label = "risk analysis"
    prompt_name = "risk_analysis"
    input_model = RiskAnalysisInput
    output_model = RiskAnalysisOutput
    optional_sections = {"team_context": "Team Context:\n{value}"}

    def reconcile(self, flow_input: RiskAnalysisInput, output: RiskAnalysisOutput) -> RiskAnalysisOutput:
        return enforce_unassigned_task_risks(output, parse_risk_tasks(flow_input.tasks_json))
