from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from taskmaster.store.local_store import LocalStore
from taskmaster.store.session import SessionStore


class FakeCompletions:
    """Replays canned model replies.

    A string is returned as message content, ``None`` yields a response with
    no choices at all, and an exception instance is raised.
    """

    def __init__(self, replies: list[Any]) -> None:
        self.replies = replies
        self.requests: list[dict[str, Any]] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def create(self, **kwargs):  # noqa: ANN003
        item = self.replies[min(len(self.requests), len(self.replies) - 1)]
        self.requests.append(kwargs)
        if isinstance(item, BaseException):
            raise item
        if item is None:
            return SimpleNamespace(choices=[])
        choice = SimpleNamespace(message=SimpleNamespace(content=item), finish_reason="stop")
        return SimpleNamespace(choices=[choice])

    def last_prompt(self) -> str:
        return self.requests[-1]["messages"][1]["content"]


class FakeOpenAI:
    def __init__(self, replies: list[Any]) -> None:
        self.chat = SimpleNamespace(completions=FakeCompletions(replies))

    @property
    def completions(self) -> FakeCompletions:
        return self.chat.completions


@pytest.fixture
def make_openai():
    def _make(*replies: Any) -> FakeOpenAI:
        return FakeOpenAI(list(replies))

    return _make


@pytest.fixture
def session(tmp_path) -> SessionStore:
    return SessionStore(LocalStore(tmp_path / "state.json"))


class FakeDataSources:
    """Serves ``pages`` one batch per query, chaining them with cursors."""

    def __init__(self, pages: list[list[dict[str, Any]]], error: Exception | None = None) -> None:
        self.pages = pages
        self.error = error
        self.queries: list[dict[str, Any]] = []

    def query(self, **kwargs):  # noqa: ANN003
        self.queries.append(kwargs)
        if self.error:
            raise self.error
        index = len(self.queries) - 1
        has_more = index < len(self.pages) - 1
        return {
            "results": self.pages[index],
            "has_more": has_more,
            "next_cursor": f"cursor-{index + 1}" if has_more else None,
        }


class FakePages:
    def __init__(self, project: dict[str, Any] | Exception) -> None:
        self.project = project

    def retrieve(self, page_id: str):  # noqa: ANN201
        if isinstance(self.project, Exception):
            raise self.project
        return self.project


class FakeDatabases:
    def __init__(self, database: dict[str, Any]) -> None:
        self.database = database

    def retrieve(self, database_id: str):  # noqa: ANN201
        return self.database


@pytest.fixture
def make_notion():
    def _make(
        project: dict[str, Any] | Exception | None = None,
        pages: list[list[dict[str, Any]]] | None = None,
        error: Exception | None = None,
        data_sources: list[dict[str, Any]] | None = None,
    ) -> SimpleNamespace:
        return SimpleNamespace(
            databases=FakeDatabases({"data_sources": [{"id": "ds-1"}] if data_sources is None else data_sources}),
            pages=FakePages(project if project is not None else {}),
            data_sources=FakeDataSources(pages if pages is not None else [[]], error),
        )

    return _make