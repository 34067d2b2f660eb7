from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping, Tuple, TypedDict

from langgraph.graph import END, START, StateGraph
from openai import OpenAI
from pydantic import ValidationError

from taskmaster.config import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_TEMPERATURE, Settings
from taskmaster.flows.result import (
    FlowResult,
    field_errors_from,
    is_service_unavailable,
    service_unavailable_message,
)
from taskmaster.flows.states import FlowOutcome, FlowStage
from taskmaster.schemas.common import FlowInput, FlowOutput


logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"


class FlowState(TypedDict):
    raw_input: Any
    flow_input: FlowInput | None
    prompt: str
    content: str | None
    result: FlowResult | None
    stage: FlowStage


class StructuredPromptFlow:
    """One validated request/response cycle against the hosted model.

    Subclasses only declare their schemas, their prompt file and the
    sections/markers that are specific to them:

    - ``optional_sections`` maps an optional input field to the text that
      replaces its placeholder line. The line is dropped when the field is
      empty.
    - ``required_markers`` maps a free-text output field to headings that
      must appear in it.
    """

    name: str = "flow"
    label: str = "report"
    prompt_name: str = ""
    input_model: type[FlowInput] = FlowInput
    output_model: type[FlowOutput] = FlowOutput
    optional_sections: dict[str, str] = {}
    required_markers: dict[str, list[str]] = {}

    def __init__(
        self,
        openai_client: OpenAI,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        self.openai_client = openai_client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.system_msg, self.user_msg_template = self._load_prompts(self.prompt_name)

        self.workflow = StateGraph(FlowState)
        self._add_nodes()
        self._add_edges()
        self.app = self.workflow.compile()

    @classmethod
    def from_settings(cls, openai_client: OpenAI, settings: Settings) -> "StructuredPromptFlow":
        return cls(
            openai_client,
            model=settings.openai_model,
            temperature=settings.flow_temperature,
            max_tokens=settings.flow_max_tokens,
        )

    @staticmethod
    def _load_prompts(prompt_name: str) -> Tuple[str, str]:
        prompt_file = PROMPTS_DIR / f"{prompt_name}_v1.md"
        if not prompt_file.exists():
            raise FileNotFoundError(f"Prompt file not found for flow {prompt_name}: {prompt_file}")

        content = prompt_file.read_text(encoding="utf-8")
        system_msg_start = content.find("## System Message")
        user_msg_start = content.find("## User Message Template")

        if system_msg_start == -1 or user_msg_start == -1:
            raise ValueError(f"System Message or User Message Template sections not found in {prompt_file}")

        system_msg = content[system_msg_start + len("## System Message"): user_msg_start].strip().strip("-").strip()
        user_msg_template = content[user_msg_start + len("## User Message Template"):].strip().strip("-").strip()
        return system_msg, user_msg_template

    def _add_nodes(self) -> None:
        self.workflow.add_node("validate_input", self._validate_node)
        self.workflow.add_node("render_prompt", self._render_node)
        self.workflow.add_node("call_model", self._call_model_node)
        self.workflow.add_node("parse_output", self._parse_node)

    def _add_edges(self) -> None:
        self.workflow.add_edge(START, "validate_input")
        self.workflow.add_conditional_edges(
            "validate_input",
            self._route,
            {"continue": "render_prompt", "failed": END},
        )
        self.workflow.add_edge("render_prompt", "call_model")
        self.workflow.add_conditional_edges(
            "call_model",
            self._route,
            {"continue": "parse_output", "failed": END},
        )
        self.workflow.add_edge("parse_output", END)

    @staticmethod
    def _route(state: FlowState) -> str:
        return "failed" if state["result"] is not None else "continue"

    # Public steps, also usable one at a time by pages and tests.

    def validate(self, raw_input: Mapping[str, Any] | FlowInput) -> FlowInput:
        """Return a conformant input record or raise ``ValidationError``."""
        if isinstance(raw_input, self.input_model):
            return raw_input
        if isinstance(raw_input, FlowInput):
            raw_input = raw_input.model_dump()
        return self.input_model.model_validate(dict(raw_input))

    def prepare_input(self, flow_input: FlowInput) -> FlowInput:
        return flow_input

    def render_prompt(self, flow_input: FlowInput) -> str:
        values = flow_input.model_dump()
        lines: list[str] = []
        for line in self.user_msg_template.splitlines():
            placeholder = line.strip()
            if placeholder.startswith("{") and placeholder.endswith("}"):
                field_name = placeholder[1:-1]
                if field_name in self.optional_sections and values.get(field_name) in (None, ""):
                    continue
            lines.append(line)

        format_values: dict[str, Any] = {}
        for field_name, value in values.items():
            if field_name in self.optional_sections:
                if value in (None, ""):
                    continue
                format_values[field_name] = self.optional_sections[field_name].format(
                    value=_format_value(value)
                )
            else:
                format_values[field_name] = value
        format_values["output_schema"] = json.dumps(self.output_model.model_json_schema(), indent=2)
        return "\n".join(lines).format(**format_values)

    def reconcile(self, flow_input: FlowInput, output: FlowOutput) -> FlowOutput:
        return output

    def run(self, raw_input: Mapping[str, Any] | FlowInput) -> FlowResult:
        logger.info("Running %s flow", self.name)
        final_state = self.app.invoke(
            FlowState(
                raw_input=raw_input,
                flow_input=None,
                prompt="",
                content=None,
                result=None,
                stage=FlowStage.RECEIVED,
            )
        )
        result = final_state["result"]
        logger.info("%s flow finished with outcome %s", self.name, result.outcome.value)
        return result

    # Graph nodes.

    def _validate_node(self, state: FlowState) -> FlowState:
        try:
            flow_input = self.validate(state["raw_input"])
        except ValidationError as exc:
            errors = field_errors_from(exc)
            logger.info("%s input rejected: %s", self.name, "; ".join(str(e) for e in errors))
            result = FlowResult.failure(
                self.name,
                FlowOutcome.INVALID_INPUT,
                errors[0].message if errors else "Invalid input.",
                errors,
            )
            return {**state, "result": result, "stage": FlowStage.FAILED}
        return {**state, "flow_input": self.prepare_input(flow_input), "stage": FlowStage.VALIDATED}

    def _render_node(self, state: FlowState) -> FlowState:
        prompt = self.render_prompt(state["flow_input"])
        return {**state, "prompt": prompt, "stage": FlowStage.RENDERED}

    def _call_model_node(self, state: FlowState) -> FlowState:
        try:
            resp = self.openai_client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.system_msg},
                    {"role": "user", "content": state["prompt"]},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except Exception as exc:
            if is_service_unavailable(exc):
                logger.warning("%s model call failed, service unavailable: %s", self.name, exc)
                outcome, message = FlowOutcome.SERVICE_UNAVAILABLE, service_unavailable_message(exc)
            else:
                logger.exception("%s model call failed", self.name)
                outcome = FlowOutcome.UPSTREAM_ERROR
                message = str(exc) or f"Could not generate {self.label}. Please try again."
            return {**state, "result": FlowResult.failure(self.name, outcome, message), "stage": FlowStage.FAILED}

        content = _first_content(resp)
        if not content or not content.strip():
            logger.error("%s model returned no content", self.name)
            return {**state, "result": self._empty_response(), "stage": FlowStage.FAILED}
        return {**state, "content": content, "stage": FlowStage.INVOKED}

    def _parse_node(self, state: FlowState) -> FlowState:
        content = state["content"] or ""
        try:
            parsed = self._parse_json(content)
        except ValueError:
            logger.error("%s output had no parseable JSON object (tail=%s)", self.name, content[-240:])
            result = FlowResult.failure(
                self.name,
                FlowOutcome.FORMAT_ERROR,
                f"AI_FORMAT_ERROR: AI response for the {self.label} was not a JSON object.",
            )
            return {**state, "result": result, "stage": FlowStage.FAILED}

        if parsed is None:
            return {**state, "result": self._empty_response(), "stage": FlowStage.FAILED}

        try:
            if not isinstance(parsed, dict):
                raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
            output = self.output_model.model_validate(parsed)
        except (ValidationError, ValueError) as exc:
            errors = field_errors_from(exc) if isinstance(exc, ValidationError) else []
            logger.error("%s produced invalid output: %s", self.name, exc)
            result = FlowResult.failure(
                self.name,
                FlowOutcome.INVALID_OUTPUT,
                f"AI response did not match the expected {self.label} schema.",
                errors,
            )
            return {**state, "result": result, "stage": FlowStage.FAILED}

        missing = self._missing_markers(output)
        if missing:
            field_name, marker = missing
            logger.error("%s response object missing %r in %s: %s", self.name, marker, field_name, parsed)
            result = FlowResult.failure(
                self.name,
                FlowOutcome.FORMAT_ERROR,
                f"AI_FORMAT_ERROR: AI response is missing the required '{marker}' heading. "
                "This might indicate an unexpected AI output structure or a problem with the AI "
                "model's adherence to the output schema.",
            )
            return {**state, "result": result, "stage": FlowStage.FAILED}

        output = self.reconcile(state["flow_input"], output)
        return {**state, "result": FlowResult.success(self.name, output), "stage": FlowStage.COMPLETED}

    def _missing_markers(self, output: FlowOutput) -> tuple[str, str] | None:
        for field_name, markers in self.required_markers.items():
            text = getattr(output, field_name) or ""
            for marker in markers:
                if not re.search(rf"^[ \t]*{re.escape(marker)}[ \t]*$", text, re.MULTILINE):
                    return field_name, marker
        return None

    def _empty_response(self) -> FlowResult:
        return FlowResult.failure(
            self.name,
            FlowOutcome.EMPTY_RESPONSE,
            f"AI_EMPTY_RESPONSE: AI did not return a valid {self.label}. The output was empty.",
        )

    @staticmethod
    def _parse_json(content: str) -> Any:
        try:
            return json.loads(content)
        except json.JSONDecodeError:
            start_index = content.find("{")
            end_index = content.rfind("}")
            if start_index == -1 or end_index == -1 or start_index >= end_index:
                raise ValueError("no JSON object in content")
            try:
                return json.loads(content[start_index : end_index + 1])
            except json.JSONDecodeError as exc:
                raise ValueError("malformed JSON object in content") from exc


def _first_content(resp: Any) -> str | None:
    choices = getattr(resp, "choices", None) if resp is not None else None
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None)


def _format_value(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
