from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.4
DEFAULT_MAX_TOKENS = 1500
DEFAULT_STATE_FILE = "./.taskmaster/state.json"


@dataclass
class Settings:
    openai_api_key: str | None
    openai_model: str = DEFAULT_MODEL
    flow_temperature: float = DEFAULT_TEMPERATURE
    flow_max_tokens: int = DEFAULT_MAX_TOKENS
    notion_api_key: str | None = None
    notion_tasks_db_id: str | None = None
    notion_projects_db_id: str | None = None
    state_file: Path = Path(DEFAULT_STATE_FILE)
    log_level: str = "INFO"


def load_settings(env_file: str = ".env") -> Settings:
    load_dotenv(env_file)
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL),
        flow_temperature=float(os.getenv("FLOW_TEMPERATURE", str(DEFAULT_TEMPERATURE))),
        flow_max_tokens=int(os.getenv("FLOW_MAX_TOKENS", str(DEFAULT_MAX_TOKENS))),
        notion_api_key=os.getenv("NOTION_API_KEY"),
        notion_tasks_db_id=os.getenv("NOTION_TASKS_DB_ID"),
        notion_projects_db_id=os.getenv("NOTION_PROJECTS_DB_ID"),
        state_file=Path(os.getenv("TASKMASTER_STATE_FILE", DEFAULT_STATE_FILE)),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


def require_setting(value: str | None, env_var: str) -> str:
    if not value:
        raise SystemExit(f"{env_var} missing in .env")
    return value
