"""Logging setup shared by the API process, the runtime and Celery workers."""

from __future__ import annotations

import logging
import logging.config
from typing import Optional

from callrelay.config import get_settings

ROOT_LOGGER_NAME = "callrelay"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class LoggingConfig:
    """Configure stdlib logging once per process from settings."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        if LoggingConfig._configured:
            return
        settings = get_settings()
        resolved_level = (level or settings.log_level or "INFO").upper()
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {"default": {"format": LOG_FORMAT}},
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "formatter": "default",
                    }
                },
                "loggers": {
                    ROOT_LOGGER_NAME: {
                        "handlers": ["console"],
                        "level": resolved_level,
                        "propagate": False,
                    },
                    "uvicorn": {"level": resolved_level},
                    "celery": {"level": resolved_level},
                },
            }
        )
        LoggingConfig._configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the callrelay namespace."""
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def mask_token(token: Optional[str]) -> str:
    """Render a chat token safe for logs (first 4 characters only)."""
    if not token:
        return "<none>"
    return token[:4] + "****"
