from __future__ import annotations

from typing import Any

from pydantic import field_validator

from taskmaster.schemas.common import FlowInput, FlowOutput, blank_to_none, require_json_array


class RetrospectiveInput(FlowInput):
    tasks_json: str
    sprint_goal: str | None = None
    team_sentiment: str | None = None
    additional_notes: str | None = None

    @field_validator("sprint_goal", "team_sentiment", "additional_notes", mode="before")
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        return blank_to_none(value)

    @field_validator("tasks_json")
    @classmethod
    def _tasks_array(cls, value: str) -> str:
        return require_json_array(value, "Tasks JSON cannot be empty. Load or paste tasks.")


class RetrospectiveOutput(FlowOutput):
    sprint_summary: str
    what_went_well: list[str]
    what_could_be_improved: list[str]
    action_items: list[str]
