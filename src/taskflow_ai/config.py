# src/taskflow_ai/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (API keys normally live in the credential store;
  env keys are only copied into it on startup).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKFLOW"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    modes_db_path: Path
    credentials_db_path: Path

    # ---- Provider keys (optional; seeded into the credential store) ----
    gemini_api_key: str | None
    zai_api_key: str | None

    # ---- Gemini ----
    gemini_base_url: str
    gemini_default_model: str
    gemini_timeout_seconds: float

    # ---- Z.ai ----
    zai_base_url: str
    zai_default_model: str
    zai_timeout_seconds: float

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "taskflow") or "taskflow"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskflow"))
        modes_db_path = _env_path(_k("MODES_DB_PATH"), data_dir / "modes.sqlite3")
        credentials_db_path = _env_path(_k("CREDENTIALS_DB_PATH"), data_dir / "credentials.sqlite3")

        gemini_api_key = _first_env(_k("GEMINI_API_KEY"), "GEMINI_API_KEY", default=None)
        zai_api_key = _first_env(_k("ZAI_API_KEY"), "ZAI_API_KEY", default=None)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            modes_db_path=modes_db_path,
            credentials_db_path=credentials_db_path,
            gemini_api_key=gemini_api_key,
            zai_api_key=zai_api_key,
            gemini_base_url=_env(_k("GEMINI_BASE_URL"), "https://generativelanguage.googleapis.com/v1beta"),
            gemini_default_model=_env(_k("GEMINI_MODEL"), "gemini-flash-lite-latest"),
            gemini_timeout_seconds=_env_float(_k("GEMINI_TIMEOUT_SECONDS"), 60.0),
            zai_base_url=_env(_k("ZAI_BASE_URL"), "https://api.z.ai/api/paas/v4"),
            zai_default_model=_env(_k("ZAI_MODEL"), "glm-4.5-flash"),
            zai_timeout_seconds=_env_float(_k("ZAI_TIMEOUT_SECONDS"), 30.0),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(override=False)
    return Settings.from_env()
