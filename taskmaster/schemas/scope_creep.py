from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from taskmaster.schemas.common import CreepLevel, FlowInput, FlowOutput, blank_to_none, require_text


class ScopeCreepInput(FlowInput):
    current_tasks_text: str
    original_tasks_text: str | None = None
    sprint_goal: str | None = None

    @field_validator("original_tasks_text", "sprint_goal", mode="before")
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        return blank_to_none(value)

    @field_validator("current_tasks_text")
    @classmethod
    def _current_required(cls, value: str) -> str:
        return require_text(value, "Current sprint tasks cannot be empty.")


class ScopeCreepOutput(FlowOutput):
    analysis_report: str = Field(description="Markdown report of the scope creep analysis.")
    creep_level: CreepLevel
    recommendations: str | None = None
