from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from taskmaster.flows.base import StructuredPromptFlow
from taskmaster.flows.result import FieldError, FlowResult, field_errors_from
from taskmaster.flows.states import FlowOutcome
from taskmaster.notion.client import TaskStoreError
from taskmaster.notion.tasks_repo import TasksRepo
from taskmaster.schemas.common import FlowInput
from taskmaster.schemas.task import Task
from taskmaster.store.session import SessionStore


logger = logging.getLogger(__name__)


@dataclass
class Notification:
    title: str
    description: str
    destructive: bool = False


@dataclass
class PendingRequest:
    ticket: int
    flow_input: FlowInput


class ReportPage:
    """Form state, task import and the single result slot of one report page.

    The slot has replace semantics guarded by a request generation counter:
    only the response to the most recently started request may be stored, so
    a slow earlier response never overwrites a newer one.
    """

    title: str = "Report"
    tasks_field: str = "tasks_text"
    default_form: dict[str, Any] = {}
    success_title: str = "Report Generated!"
    success_description: str = "The AI has generated your report."
    loaded_title: str = "Tasks Loaded"
    loaded_description: str = "Tasks from your active project have been loaded."
    none_selected_title: str = "No Matching Tasks"
    none_selected_description: str = "No matching tasks found in your active project."

    def __init__(
        self,
        flow: StructuredPromptFlow,
        session: SessionStore,
        tasks_repo: TasksRepo | None = None,
    ) -> None:
        self.flow = flow
        self.session = session
        self.tasks_repo = tasks_repo
        self.form: dict[str, Any] = dict(self.default_form)
        self.field_errors: list[FieldError] = []
        self.result: Any | None = None
        self.last_outcome: FlowOutcome | None = None
        self._generation = 0

    # Result slot.

    @property
    def generation(self) -> int:
        return self._generation

    def begin_request(self) -> int:
        self._generation += 1
        return self._generation

    def commit(self, ticket: int, result: FlowResult) -> bool:
        """Store ``result`` unless a newer request has started since ``ticket``."""
        if ticket != self._generation:
            logger.info("%s: discarding stale response %d (latest is %d)", self.title, ticket, self._generation)
            return False
        self.last_outcome = result.outcome
        self.result = result.output if result.ok else None
        return True

    # Form submission.

    def update_form(self, values: Mapping[str, Any]) -> None:
        self.form.update(values)

    def submit(self, values: Mapping[str, Any] | None = None) -> Notification:
        request = self.start(values)
        if request is None:
            first = self.field_errors[0] if self.field_errors else FieldError("input", "Invalid input.")
            return Notification("Invalid Input", f"{first.field}: {first.message}", destructive=True)
        return self.finish(request)

    def start(self, values: Mapping[str, Any] | None = None) -> PendingRequest | None:
        """Validate the form and take a ticket, or return ``None`` with ``field_errors`` set.

        ``start`` and ``finish`` may interleave when several requests run
        concurrently; only the request started last can fill the result slot.
        """
        if values:
            self.update_form(values)

        try:
            flow_input = self.flow.validate(self.form)
        except ValidationError as exc:
            self.field_errors = field_errors_from(exc)
            return None
        self.field_errors = []
        return PendingRequest(ticket=self.begin_request(), flow_input=flow_input)

    def finish(self, request: PendingRequest) -> Notification:
        ticket = request.ticket
        try:
            result = self.flow.run(request.flow_input)
        except Exception:
            logger.exception("%s: unexpected error while generating the report", self.title)
            result = FlowResult.failure(
                self.flow.name,
                FlowOutcome.UPSTREAM_ERROR,
                f"Could not generate {self.flow.label}. Please try again.",
            )
        if not self.commit(ticket, result):
            return Notification("Superseded", "A newer request replaced this result.")
        return self.notification_for(result)

    def notification_for(self, result: FlowResult) -> Notification:
        if result.ok:
            return Notification(self.success_title, self.success_description)
        if result.outcome == FlowOutcome.INVALID_INPUT:
            return Notification("Invalid Input", result.message, destructive=True)
        return Notification("AI Error", result.message, destructive=True)

    # Task import from the active project.

    def select_tasks(self, tasks: list[Task]) -> list[Task]:
        return tasks

    def format_tasks(self, tasks: list[Task]) -> str:
        raise NotImplementedError

    def load_tasks_from_active_project(self) -> Notification:
        user = self.session.current_user()
        if user is None:
            return Notification("Error", "You must be logged in to load project tasks.", destructive=True)

        project_id = self.session.active_project_id(user.id)
        if not project_id:
            return Notification(
                "No Active Project", "Please select a project on the board page first.", destructive=True
            )
        if self.tasks_repo is None:
            return Notification("Error Loading Tasks", "No task store is configured.", destructive=True)

        try:
            tasks = self.tasks_repo.list_by_project(project_id, user.id)
        except TaskStoreError:
            logger.exception("%s: failed to fetch project tasks", self.title)
            return Notification(
                "Error Loading Tasks",
                "Could not load tasks from the task store. Check your project data and try again.",
                destructive=True,
            )

        if not tasks:
            self.form[self.tasks_field] = ""
            return Notification("No Tasks Found", "No tasks found for the active project.")

        selected = self.select_tasks(tasks)
        if not selected:
            self.form[self.tasks_field] = ""
            return Notification(self.none_selected_title, self.none_selected_description)

        self.form[self.tasks_field] = self.format_tasks(selected)
        return Notification(self.loaded_title, self.loaded_description)

    # Rendering.

    def render(self) -> str:
        if self.result is None:
            return ""
        return self.render_output(self.result)

    def render_output(self, output: Any) -> str:
        raise NotImplementedError


def bullet_list(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items) if items else "- None"
