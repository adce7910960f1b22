"""Logging configuration for the queue service."""

from __future__ import annotations

import logging
import logging.config

from bandhu_queue.core.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a console handler on the root logger at the configured level."""
    resolved = (level or settings.log_level).upper()
    if resolved not in logging.getLevelNamesMapping():
        resolved = "INFO"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"level": resolved, "handlers": ["console"]},
            "loggers": {
                "sqlalchemy.engine": {"level": "INFO" if settings.sql_debug else "WARNING"},
                "uvicorn.access": {"level": "WARNING"},
            },
        }
    )
