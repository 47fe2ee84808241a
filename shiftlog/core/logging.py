"""Structured logging setup shared by the API process and maintenance scripts."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from shiftlog.core.config import get_settings


def add_log_level(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["level"] = method_name.upper()
    return event_dict


def drop_color_message_key(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Uvicorn adds ``color_message`` to its records; it only duplicates ``event``."""

    event_dict.pop("color_message", None)
    return event_dict


def configure_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Configure structlog on top of the standard library root logger.

    JSON lines are rendered when ``log_format`` is ``"json"``, a console
    renderer otherwise. Repeat calls reconfigure in place.
    """

    settings = get_settings()
    resolved_level = (level or settings.log_level).upper()
    resolved_format = log_format or settings.log_format

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if resolved_format == "json":
        processors = shared_processors + [structlog.processors.JSONRenderer()]
    else:
        processors = shared_processors + [
            drop_color_message_key,
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=resolved_level)
    logging.getLogger().setLevel(resolved_level)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
