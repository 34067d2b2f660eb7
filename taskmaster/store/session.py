from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass

from taskmaster.store.local_store import LocalStore


logger = logging.getLogger(__name__)

MOCK_USER_KEY = "taskMasterUser"
ACTIVE_PROJECT_BASE_KEY = "taskMasterActiveProjectId"


@dataclass
class SessionUser:
    id: str
    name: str
    email: str


def mock_user_id(email: str) -> str:
    return "mock-user-" + re.sub(r"[^a-z0-9-]", "", email.lower().replace("@", "-at-"))


def user_scoped_key(base_key: str, user_id: str | None = None) -> str:
    if not user_id:
        return f"{base_key}-unauthenticated"
    return f"{base_key}-{user_id}"


class SessionStore:
    """Mock, non-cryptographic sign-in plus the user's active project."""

    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def current_user(self) -> SessionUser | None:
        raw = self.store.get(MOCK_USER_KEY)
        if not raw:
            return None
        try:
            return SessionUser(**json.loads(raw))
        except (json.JSONDecodeError, TypeError):
            logger.warning("Discarding unreadable session entry")
            self.store.remove(MOCK_USER_KEY)
            return None

    def login(self, email: str) -> SessionUser:
        # Any credentials are accepted.
        email = email.strip().lower()
        return self._sign_in(SessionUser(id=mock_user_id(email), name=email.split("@")[0] or "Demo User", email=email))

    def signup(self, name: str, email: str) -> SessionUser:
        email = email.strip().lower()
        return self._sign_in(SessionUser(id=mock_user_id(email), name=name, email=email))

    def _sign_in(self, user: SessionUser) -> SessionUser:
        self.store.set(MOCK_USER_KEY, json.dumps(asdict(user)))
        return user

    def logout(self) -> None:
        self.store.remove(MOCK_USER_KEY)

    def active_project_id(self, user_id: str | None) -> str | None:
        return self.store.get(user_scoped_key(ACTIVE_PROJECT_BASE_KEY, user_id))

    def set_active_project_id(self, user_id: str | None, project_id: str) -> None:
        self.store.set(user_scoped_key(ACTIVE_PROJECT_BASE_KEY, user_id), project_id)
