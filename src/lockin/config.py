# src/lockin/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing has to be configured: every value has a local default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "LOCKIN"

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
    log_file_max_bytes: int
    log_file_backups: int

    # ---- Storage ----
    data_dir: Path
    storage_backend: str  # "sqlite" | "memory"
    storage_path: Path
    storage_scope: str
    storage_quota_bytes: int

    # ---- Profile ----
    default_username: str

    # ---- Reminders ----
    reminder_poll_seconds: float
    reminder_window_seconds: float
    default_reminder_minutes: int
    notifications_supported: bool
    notification_permission: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "lockin").strip() or "lockin"
        log_level = _env(_k("LOG_LEVEL"), "WARNING")
        log_file_max_bytes = max(0, _env_int(_k("LOG_FILE_MAX_BYTES"), 1024 * 1024))
        log_file_backups = max(0, _env_int(_k("LOG_FILE_BACKUPS"), 3))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/lockin"))
        storage_backend = _env(_k("STORAGE_BACKEND"), "sqlite").strip().lower()
        if storage_backend not in ("sqlite", "memory"):
            storage_backend = "sqlite"
        storage_path = _env_path(_k("STORAGE_PATH"), data_dir / "storage.sqlite3")
        storage_scope = _env(_k("STORAGE_SCOPE"), "default").strip() or "default"
        storage_quota_bytes = max(0, _env_int(_k("STORAGE_QUOTA_BYTES"), 5 * 1024 * 1024))

        default_username = _env(_k("DEFAULT_USERNAME"), "User").strip() or "User"

        reminder_poll_seconds = _env_float(_k("REMINDER_POLL_SECONDS"), 10.0)
        reminder_window_seconds = _env_float(_k("REMINDER_WINDOW_SECONDS"), 60.0)
        default_reminder_minutes = _env_int(_k("DEFAULT_REMINDER_MINUTES"), 30)
        notifications_supported = _env_bool(_k("NOTIFICATIONS_SUPPORTED"), True)
        notification_permission = _env(_k("NOTIFICATION_PERMISSION"), "default").strip().lower()

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_file_max_bytes=log_file_max_bytes,
            log_file_backups=log_file_backups,
            data_dir=data_dir,
            storage_backend=storage_backend,
            storage_path=storage_path,
            storage_scope=storage_scope,
            storage_quota_bytes=storage_quota_bytes,
            default_username=default_username,
            reminder_poll_seconds=reminder_poll_seconds,
            reminder_window_seconds=reminder_window_seconds,
            default_reminder_minutes=default_reminder_minutes,
            notifications_supported=notifications_supported,
            notification_permission=notification_permission,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
