from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from taskmaster.schemas.common import (
    FlowInput,
    FlowOutput,
    RiskLevel,
    blank_to_none,
    require_json_array,
)


class RiskAnalysisInput(FlowInput):
    tasks_json: str
    team_context: str | None = None

    @field_validator("team_context", mode="before")
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        return blank_to_none(value)

    @field_validator("tasks_json")
    @classmethod
    def _tasks_array(cls, value: str) -> str:
        return require_json_array(value, "Tasks JSON cannot be empty. Load or paste tasks.")


class RiskTaskRecord(BaseModel):
    """Loose view of one entry of ``tasks_json``; unknown keys are ignored."""

    id: str
    title: str
    status: str = ""
    assignee: str | None = None
    priority: str | None = None
    effort: float | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("assignee", "priority", mode="before")
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        return blank_to_none(value)


class TaskSummary(FlowOutput):
    id: str
    title: str
    priority: str | None = None


class MemberRisk(FlowOutput):
    member_id_or_name: str
    risk_level: RiskLevel
    risk_factors: list[str]
    relevant_tasks_summary: list[TaskSummary] = Field(default_factory=list)


class TaskRisk(FlowOutput):
    task_id: str
    task_title: str
    risk_level: RiskLevel
    risk_factors: list[str]


class RiskAnalysisOutput(FlowOutput):
    member_risk_analysis: list[MemberRisk]
    task_risk_analysis: list[TaskRisk]
    overall_assessment: str
    recommendations: list[str]
