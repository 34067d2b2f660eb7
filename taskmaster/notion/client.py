from __future__ import annotations

from typing import Any

from notion_client import Client

from taskmaster.config import Settings, require_setting


class TaskStoreError(RuntimeError):
    """Reading or writing project data failed in the task store."""


def get_notion_client(settings: Settings) -> Client:
    api_key = require_setting(settings.notion_api_key, "NOTION_API_KEY")
    return Client(auth=api_key)


def first_data_source_id(client: Client, database_id: str) -> str:
    try:
        database = client.databases.retrieve(database_id=database_id)
    except Exception as exc:
        raise TaskStoreError(
            f"Unable to retrieve Notion database '{database_id}' to resolve its data source ID."
        ) from exc

    for data_source in database.get("data_sources", []):
        data_source_id = data_source.get("id")
        if data_source_id:
            return data_source_id

    raise TaskStoreError(f"No data source found for Notion database '{database_id}'.")


def query_all(client: Client, query: dict[str, Any]) -> list[dict[str, Any]]:
    """Every page matching ``query``, following ``next_cursor`` until exhausted."""
    response = client.data_sources.query(**query)
    results = list(response.get("results", []))
    cursor = response.get("next_cursor")
    has_more = bool(response.get("has_more"))

    while has_more and cursor:
        page = client.data_sources.query(**query, start_cursor=cursor)
        results.extend(page.get("results", []))
        has_more = bool(page.get("has_more"))
        cursor = page.get("next_cursor")
    return results
