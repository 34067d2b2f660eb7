from __future__ import annotations

from enum import Enum


class FlowStage(str, Enum):
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    RENDERED = "RENDERED"
    INVOKED = "INVOKED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class FlowOutcome(str, Enum):
    SUCCESS = "success"
    INVALID_INPUT = "invalid_input"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UPSTREAM_ERROR = "upstream_error"
    EMPTY_RESPONSE = "empty_response"
    FORMAT_ERROR = "format_error"
    INVALID_OUTPUT = "invalid_output"
