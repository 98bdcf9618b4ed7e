"""
Structured logging for closurekit.

The library only *emits* log events; it never configures logging on import.
Applications (or tests) call ``configure_logging()`` once at startup to pick a
level and an output format.

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="closurekit")
            │
            ▼
        structlog processor chain:
          1. TimeStamper (iso)
          2. add_log_level
          3. _add_service_metadata
          4. JSONRenderer (non-tty) or ConsoleRenderer (tty)

        logger = get_logger(__name__)
        logger.info("limit_reached", function="send", maximum=3)

Examples:
    >>> from closurekit.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=True)
    >>> get_logger(__name__).debug("cache_miss", function="fib")

Tags:
    logging, structlog, observability, closurekit
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "closurekit"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
    service: str = "closurekit",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). ``None`` reads
            ``ClosureKitSettings.log_level``.
        json_format: True for JSON, False for console, None to use
            ``ClosureKitSettings.log_format`` (``auto`` → JSON if not a tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    from closurekit.core.settings import get_settings

    settings = get_settings()
    log_level = (level or settings.log_level).upper()

    if json_format is None:
        if settings.log_format == "auto":
            json_format = not sys.stdout.isatty()
        else:
            json_format = settings.log_format == "json"

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level),
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


__all__ = [
    "configure_logging",
    "get_logger",
]
