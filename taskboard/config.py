"""Settings loaded once from environment variables (+ optional .env).

A single frozen Settings object is built at process start and handed to
create_app(); components read it from app.state instead of module globals.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "TASKBOARD"
DEFAULT_SECRET_KEY = "super-secret-key-replace-in-production"
DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent / "taskboard.db"


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: Optional[str] = None) -> Optional[str]:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True, slots=True)
class Settings:
    secret_key: str = DEFAULT_SECRET_KEY
    production: bool = False
    database_url: str = f"sqlite:///{DEFAULT_DB_PATH}"
    session_days: int = 7
    log_level: str = "INFO"
    # Off keeps PATCH/DELETE by id trusting the path id alone.
    enforce_task_ownership: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def uses_default_secret(self) -> bool:
        return self.secret_key == DEFAULT_SECRET_KEY

    @staticmethod
    def from_env(dotenv: bool = True) -> "Settings":
        if dotenv:
            load_dotenv(override=False)

        env_name = _first_env(_k("ENV"), "APP_ENV", default="development") or "development"

        return Settings(
            secret_key=_first_env(_k("SECRET_KEY"), "JWT_SECRET", default=DEFAULT_SECRET_KEY)
            or DEFAULT_SECRET_KEY,
            production=env_name.strip().lower() == "production",
            database_url=_env(_k("DATABASE_URL"), f"sqlite:///{DEFAULT_DB_PATH}"),
            session_days=max(1, _env_int(_k("SESSION_DAYS"), 7)),
            log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
            enforce_task_ownership=_env_bool(_k("ENFORCE_OWNERSHIP"), False),
            host=_env(_k("HOST"), "127.0.0.1"),
            port=_env_int(_k("PORT"), 8000),
        )
