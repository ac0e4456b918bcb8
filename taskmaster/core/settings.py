"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import logging
import os
import sys


DATA_DIR_ENV = "TASKMASTER_DATA_DIR"
DATABASE_URL_ENV = "TASKMASTER_DATABASE_URL"
LOG_LEVEL_ENV = "TASKMASTER_LOG_LEVEL"


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``.

    ``TASKMASTER_DATA_DIR`` in ``env`` wins over the platform default.
    """

    platform_id = (platform or sys.platform).lower()
    environ = dict(os.environ if env is None else env)
    override = environ.get(DATA_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()

    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = Path(environ.get("APPDATA") or home_dir / "Library" / "Application Support")
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return (base.expanduser() / sanitized)


APP_NAME = "TaskMaster"


DATA_DIR = get_default_data_dir(APP_NAME)
LOG_DIR = DATA_DIR / "logs"

for _dir in (DATA_DIR, LOG_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


DB_PATH = DATA_DIR / "taskmaster.db"


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = f"sqlite:///{DB_PATH.as_posix()}"
    echo: bool = False


DATABASE = DatabaseSettings(url=os.environ.get(DATABASE_URL_ENV) or DatabaseSettings.url)


@dataclass(frozen=True)
class LoggingSettings:
    path: Path = LOG_DIR / "taskmaster.log"
    level: int = logging.INFO
    max_bytes: int = 1_000_000
    backup_count: int = 3


def _log_level(raw: Optional[str]) -> int:
    level = logging.getLevelName((raw or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


LOGGING = LoggingSettings(level=_log_level(os.environ.get(LOG_LEVEL_ENV)))


@dataclass(frozen=True)
class TaskRules:
    # Subtask dates inside the parent's window; off unless a deployment asks for it.
    enforce_subtask_window: bool = False


TASK_RULES = TaskRules()


__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "LOG_DIR",
    "DB_PATH",
    "DATABASE",
    "LOGGING",
    "TASK_RULES",
    "DatabaseSettings",
    "LoggingSettings",
    "TaskRules",
    "get_default_data_dir",
]
