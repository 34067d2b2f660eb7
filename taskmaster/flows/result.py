from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import openai
from pydantic import ValidationError

from taskmaster.flows.states import FlowOutcome


SERVICE_UNAVAILABLE_PATTERN = re.compile(r"\b503\b|overloaded|service unavailable", re.IGNORECASE)
SERVICE_DETAIL_PATTERN = re.compile(r"50\d|overloaded|unavailable", re.IGNORECASE)


@dataclass
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass
class FlowResult:
    """Tagged outcome of one flow invocation.

    ``output`` is only set when ``outcome`` is SUCCESS; every other outcome
    carries a user-facing ``message`` and, for validation failures, the
    offending fields.
    """

    flow: str
    outcome: FlowOutcome
    output: Any | None = None
    message: str = ""
    field_errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome == FlowOutcome.SUCCESS

    @classmethod
    def success(cls, flow: str, output: Any) -> "FlowResult":
        return cls(flow=flow, outcome=FlowOutcome.SUCCESS, output=output)

    @classmethod
    def failure(
        cls,
        flow: str,
        outcome: FlowOutcome,
        message: str,
        field_errors: list[FieldError] | None = None,
    ) -> "FlowResult":
        return cls(flow=flow, outcome=outcome, message=message, field_errors=list(field_errors or []))


def field_errors_from(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "input"
        errors.append(FieldError(field=location, message=error.get("msg", "Invalid value.")))
    return errors


def is_service_unavailable(exc: BaseException) -> bool:
    # APITimeoutError is a subclass of APIConnectionError.
    if isinstance(exc, openai.APIConnectionError):
        return True
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int) and status_code >= 500:
        return True
    return bool(SERVICE_UNAVAILABLE_PATTERN.search(str(exc)))


def service_unavailable_message(exc: BaseException) -> str:
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        detail = str(status_code)
    else:
        match = SERVICE_DETAIL_PATTERN.search(str(exc))
        detail = match.group(0) if match else "Error"
    return (
        f"The AI service is currently overloaded or unavailable ({detail}). "
        "Please try again in a few moments."
    )
