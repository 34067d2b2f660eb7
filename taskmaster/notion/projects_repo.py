from __future__ import annotations

import logging
from typing import Any

from notion_client import APIErrorCode, APIResponseError, Client
from pydantic import ValidationError

from taskmaster.notion.client import TaskStoreError, first_data_source_id, query_all
from taskmaster.notion.mappers import page_to_project
from taskmaster.schemas.task import Project


logger = logging.getLogger(__name__)


class ProjectsRepo:
    def __init__(self, client: Client, database_id: str | None = None) -> None:
        self.client = client
        self.database_id = database_id
        self._data_source_id: str | None = None

    @property
    def data_source_id(self) -> str:
        if self._data_source_id is None:
            if not self.database_id:
                raise TaskStoreError("No Notion projects database is configured.")
            self._data_source_id = first_data_source_id(self.client, self.database_id)
        return self._data_source_id

    def get(self, project_id: str) -> Project | None:
        try:
            page = self.client.pages.retrieve(page_id=project_id)
        except APIResponseError as exc:
            if exc.code == APIErrorCode.ObjectNotFound:
                logger.info("Project %s not found", project_id)
                return None
            raise TaskStoreError(f"Failed to load project '{project_id}'.") from exc
        except Exception as exc:
            raise TaskStoreError(f"Failed to load project '{project_id}'.") from exc
        if page.get("archived") or page.get("in_trash"):
            return None
        try:
            return page_to_project(page)
        except (ValidationError, KeyError) as exc:
            raise TaskStoreError(f"Project '{project_id}' is not a valid project record.") from exc

    def get_owned(self, project_id: str, user_id: str) -> Project | None:
        """The project, or ``None`` when it is missing or owned by someone else."""
        if not project_id or not user_id:
            return None
        project = self.get(project_id)
        if project is None or project.owner_id != user_id:
            return None
        return project

    def list_by_owner(self, user_id: str) -> list[Project]:
        """Projects owned by ``user_id``, sorted by name."""
        if not user_id:
            return []

        query: dict[str, Any] = {
            "data_source_id": self.data_source_id,
            "filter": {"property": "Owner ID", "rich_text": {"equals": user_id}},
            "page_size": 100,
        }
        try:
            results = query_all(self.client, query)
        except Exception as exc:
            raise TaskStoreError(f"Error fetching projects for user '{user_id}'.") from exc

        try:
            projects = [page_to_project(page) for page in results if not page.get("in_trash")]
        except (ValidationError, KeyError) as exc:
            raise TaskStoreError(f"User '{user_id}' owns a malformed project record.") from exc
        return sorted(projects, key=lambda project: project.name.lower())
