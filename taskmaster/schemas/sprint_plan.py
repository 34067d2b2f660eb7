from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError

from taskmaster.schemas.common import FlowInput, FlowOutput, blank_to_none, require_text


class SprintPlanInput(FlowInput):
    # One task per line: "<Title> – <Priority> – <Story Points>"
    tasks_text: str
    sprint_duration: str | None = None
    team_size: str | None = None
    team_story_point_capacity: float | None = None
    sprint_goal: str | None = None

    @field_validator("sprint_duration", "team_size", "sprint_goal", mode="before")
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        return blank_to_none(value)

    @field_validator("tasks_text")
    @classmethod
    def _tasks_required(cls, value: str) -> str:
        return require_text(value, "Tasks text cannot be empty.")

    @field_validator("team_story_point_capacity", mode="before")
    @classmethod
    def _capacity_number(cls, value: Any) -> Any:
        value = blank_to_none(value)
        if value is None:
            return None
        if isinstance(value, bool):
            raise PydanticCustomError("capacity_type", "Story point capacity must be a number.")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise PydanticCustomError("capacity_type", "Story point capacity must be a number.")
        if number < 0:
            raise PydanticCustomError("capacity_negative", "Story point capacity must be non-negative.")
        return number


class SprintPlanOutput(FlowOutput):
    sprint_plan: str = Field(
        description='Markdown plan containing a "## Sprint Plan" section and a "## Deferred Tasks" section.'
    )
    warnings_or_suggestions: str | None = Field(
        default=None,
        description='Warnings or suggestions under a "## Warnings & Suggestions" heading.',
    )
