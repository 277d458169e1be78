# src/task_reminder/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every key has a local default.
- Malformed values fall back to defaults instead of crashing startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKR"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


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


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


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

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path
    alarms_db_path: Path

    # ---- Reminders ----
    default_reminder_minutes: int
    allow_exact_alarms: bool
    inexact_window_seconds: float
    dispatch_interval_seconds: float
    dispatch_retry_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "task-reminder") or "task-reminder"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/task_reminder"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "tasks.sqlite3")
        alarms_db_path = _env_path(_k("ALARMS_DB_PATH"), data_dir / "alarms.sqlite3")

        default_reminder_minutes = max(0, _env_int(_k("DEFAULT_REMINDER_MINUTES"), 60))
        allow_exact_alarms = _env_bool(_k("ALLOW_EXACT_ALARMS"), True)
        inexact_window_seconds = max(0.0, _env_float(_k("INEXACT_WINDOW_SECONDS"), 600.0))
        dispatch_interval_seconds = max(0.5, _env_float(_k("DISPATCH_INTERVAL_SECONDS"), 15.0))
        dispatch_retry_seconds = max(1.0, _env_float(_k("DISPATCH_RETRY_SECONDS"), 60.0))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            db_path=db_path,
            alarms_db_path=alarms_db_path,
            default_reminder_minutes=default_reminder_minutes,
            allow_exact_alarms=allow_exact_alarms,
            inexact_window_seconds=inexact_window_seconds,
            dispatch_interval_seconds=dispatch_interval_seconds,
            dispatch_retry_seconds=dispatch_retry_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
