from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic_core import PydanticCustomError


RiskLevel = Literal["Low", "Medium", "High", "Critical"]
CreepLevel = Literal["None", "Low", "Moderate", "High"]

RISK_LEVELS: list[str] = ["Low", "Medium", "High", "Critical"]
CREEP_LEVELS: list[str] = ["None", "Low", "Moderate", "High"]


def risk_rank(level: str) -> int:
    return RISK_LEVELS.index(level)


def creep_rank(level: str) -> int:
    return CREEP_LEVELS.index(level)


class FlowInput(BaseModel):
    """Base for form-derived flow inputs.

    Strings are stripped; blank optional text is treated as absent so the
    prompt renderer can omit the corresponding section.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class FlowOutput(BaseModel):
    model_config = ConfigDict(extra="forbid")


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def require_text(value: Any, message: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PydanticCustomError("empty_text", message)
    return value


def require_json_array(value: str, message: str) -> str:
    value = require_text(value, message)
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        raise PydanticCustomError(
            "invalid_json",
            "The tasks data is not valid JSON. Please check the format or reload tasks.",
        )
    if not isinstance(parsed, list):
        raise PydanticCustomError("json_not_array", "Tasks JSON must be an array.")
    return value
