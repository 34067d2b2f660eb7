from __future__ import annotations

import logging
from typing import Any

from notion_client import Client
from pydantic import ValidationError

from taskmaster.notion.client import TaskStoreError, first_data_source_id, query_all
from taskmaster.notion.mappers import page_to_task
from taskmaster.notion.projects_repo import ProjectsRepo
from taskmaster.schemas.task import Task


logger = logging.getLogger(__name__)


class TasksRepo:
    def __init__(self, client: Client, database_id: str, projects: ProjectsRepo | None = None) -> None:
        self.client = client
        self.database_id = database_id
        self.data_source_id = first_data_source_id(client, database_id)
        self.projects = projects or ProjectsRepo(client)

    def list_by_project(self, project_id: str, user_id: str) -> list[Task]:
        """Tasks of a project owned by ``user_id``, newest first.

        Returns an empty list when the project is missing or owned by someone
        else; raises ``TaskStoreError`` when Notion cannot be read or holds a
        record that is not a valid task.
        """
        if not project_id or not user_id:
            return []

        if self.projects.get_owned(project_id, user_id) is None:
            logger.info("Project %s not accessible for user %s", project_id, user_id)
            return []

        query: dict[str, Any] = {
            "data_source_id": self.data_source_id,
            "filter": {"property": "Project ID", "rich_text": {"equals": project_id}},
            "sorts": [{"timestamp": "created_time", "direction": "descending"}],
            "page_size": 100,
        }
        try:
            results = query_all(self.client, query)
        except Exception as exc:
            raise TaskStoreError(
                f"Error fetching tasks for project '{project_id}', user '{user_id}'."
            ) from exc

        try:
            return [page_to_task(page, project_id) for page in results]
        except (ValidationError, KeyError) as exc:
            raise TaskStoreError(f"Project '{project_id}' contains a malformed task record.") from exc
