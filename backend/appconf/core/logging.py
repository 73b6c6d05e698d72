"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from appconf.core.config import Settings
from appconf.core.config import settings as default_settings

# Standard library loggers that follow the configured level.
_ALIGNED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _renderer(settings: Settings) -> list[Any]:
    if settings.debug:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the standard library root logger.

    Production output is one JSON object per line; ``debug`` switches to the
    colored console renderer. Every event carries the service name.
    """
    settings = settings or default_settings
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        *_renderer(settings),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=settings.app_name)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    for name in _ALIGNED_LOGGERS:
        logging.getLogger(name).setLevel(log_level)
    # SQL echo is only wanted while debugging.
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name, usually the caller's ``__name__``.
    """
    return structlog.get_logger(name)
