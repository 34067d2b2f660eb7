from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


DEFAULT_TASK_STATUSES = ["To Do", "In Progress", "In Review", "Done"]
ACTIVE_TASK_STATUSES = ["To Do", "In Progress", "In Review"]

TaskPriority = Literal["Low", "Medium", "High", "Critical"]


class Project(BaseModel):
    id: str
    name: str
    key: str = ""
    description: str = ""
    owner_id: str = ""
    type: str | None = None
    lead: str | None = None


class Task(BaseModel):
    id: str
    title: str
    description: str = ""
    # Custom board columns are allowed, so status is a free string.
    status: str
    category: str | None = None
    assignee: str | None = None
    priority: TaskPriority | None = None
    effort: float | None = Field(default=None, ge=0)
    created_at: datetime | None = None
    project_id: str = ""
