"""Named loggers sharing one rotating log file."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from taskmaster.core.settings import LOGGING

ROOT_LOGGER_NAME = "taskmaster"


def _ensure_root_logger() -> logging.Logger:
    # One handler for one file; child loggers propagate here.
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if not logger.handlers:
        LOGGING.path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            LOGGING.path,
            maxBytes=LOGGING.max_bytes,
            backupCount=LOGGING.backup_count,
            encoding="utf-8",
        )
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(LOGGING.level)
    return logger


def get_logger(name: str) -> logging.Logger:
    root = _ensure_root_logger()
    if name == ROOT_LOGGER_NAME:
        return root
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


__all__ = ["ROOT_LOGGER_NAME", "get_logger"]
