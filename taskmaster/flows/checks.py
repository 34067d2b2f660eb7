from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from taskmaster.schemas.common import creep_rank, risk_rank
from taskmaster.schemas.risk_analysis import RiskAnalysisOutput, RiskTaskRecord, TaskRisk
from taskmaster.schemas.scope_creep import ScopeCreepOutput


logger = logging.getLogger(__name__)

ELEVATED_PRIORITIES = {"High", "Critical"}
COMPLETED_STATUSES = {"done"}


def _task_lines(text: str | None) -> list[str]:
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


def newly_added_tasks(current_tasks_text: str, original_tasks_text: str | None) -> list[str]:
    """Current task lines that do not appear in the original list.

    Lines are compared case-insensitively after trimming and stripping list
    bullets. Without an original list nothing can be called new.
    """
    if not original_tasks_text:
        return []
    original = {_normalize_line(line) for line in _task_lines(original_tasks_text)}
    added: list[str] = []
    seen: set[str] = set()
    for line in _task_lines(current_tasks_text):
        key = _normalize_line(line)
        if not key or key in original or key in seen:
            continue
        seen.add(key)
        added.append(line)
    return added


def _normalize_line(line: str) -> str:
    return " ".join(line.lstrip("-*• ").split()).lower()


def enforce_creep_floor(output: ScopeCreepOutput, added_tasks: list[str]) -> ScopeCreepOutput:
    if not added_tasks or creep_rank(output.creep_level) > creep_rank("None"):
        return output
    logger.warning(
        "Model reported no scope creep although %d task(s) were added; raising to Low",
        len(added_tasks),
    )
    return output.model_copy(update={"creep_level": "Low"})


def parse_risk_tasks(tasks_json: str) -> list[RiskTaskRecord]:
    """Leniently read task records, skipping entries without id/title."""
    try:
        raw_tasks: Any = json.loads(tasks_json)
    except json.JSONDecodeError:
        return []
    if not isinstance(raw_tasks, list):
        return []
    tasks: list[RiskTaskRecord] = []
    for item in raw_tasks:
        if not isinstance(item, dict):
            continue
        try:
            tasks.append(RiskTaskRecord.model_validate(item))
        except ValidationError:
            logger.debug("Skipping malformed task entry: %s", item)
    return tasks


def unassigned_priority_tasks(tasks: list[RiskTaskRecord]) -> list[RiskTaskRecord]:
    return [
        task
        for task in tasks
        if task.priority in ELEVATED_PRIORITIES
        and not task.assignee
        and task.status.strip().lower() not in COMPLETED_STATUSES
    ]


def enforce_unassigned_task_risks(output: RiskAnalysisOutput, tasks: list[RiskTaskRecord]) -> RiskAnalysisOutput:
    """Every open High/Critical task without an assignee is at least High risk."""
    flagged = unassigned_priority_tasks(tasks)
    if not flagged:
        return output

    task_risks = [risk.model_copy() for risk in output.task_risk_analysis]
    by_id = {risk.task_id: index for index, risk in enumerate(task_risks)}
    for task in flagged:
        floor = "Critical" if task.priority == "Critical" else "High"
        factor = f"No assignee for {task.priority.lower()} priority task"
        index = by_id.get(task.id)
        if index is None:
            task_risks.append(
                TaskRisk(task_id=task.id, task_title=task.title, risk_level=floor, risk_factors=[factor])
            )
            by_id[task.id] = len(task_risks) - 1
            continue
        existing = task_risks[index]
        if risk_rank(existing.risk_level) >= risk_rank(floor):
            continue
        factors = existing.risk_factors if factor in existing.risk_factors else [*existing.risk_factors, factor]
        task_risks[index] = existing.model_copy(update={"risk_level": floor, "risk_factors": factors})

    return output.model_copy(update={"task_risk_analysis": task_risks})
