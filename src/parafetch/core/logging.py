"""
Structured logging for parafetch.

Configures structlog once per process and hands out bound loggers. Log calls
use dotted event names with key-value fields::

    logger = get_logger(__name__)
    logger.warning("fetch.attempt_io_error", attempt=1, error="Network error")

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="parafetch")
            │
            ▼
        processor chain:
          1. TimeStamper (ISO)
          2. merge_contextvars      ← bind_context / LogContext
          3. add_log_level / logger name
          4. service metadata
          5. ECS field names (JSON only)
          6. JSONRenderer | ConsoleRenderer

    The retry engine wraps each source in ``LogContext(source=...)`` so every
    attempt line names its source without passing it around. Context lives in
    contextvars, which asyncio copies per task, so concurrent sources never
    see each other's context.

Examples:
    >>> from parafetch.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> get_logger(__name__).info("fetch.start", sources=3)

Tags:
    logging, structlog, observability, json-logging, parafetch
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Store service name for metadata
_SERVICE_NAME = "parafetch"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Make field names Elasticsearch/ECS compatible."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")

    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")

    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "parafetch",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(_elasticsearch_compatible)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


class _NamedPrintLogger(structlog.PrintLogger):
    """PrintLogger that remembers the name it was requested under."""

    def __init__(self, name: str | None, file: TextIO) -> None:
        super().__init__(file=file)
        self.name = name


def _stderr_logger_factory(*args: Any) -> _NamedPrintLogger:
    # stdout is reserved for fetch results; resolve stderr per logger so
    # redirected streams (CLI runners, pytest capture) are honoured.
    return _NamedPrintLogger(args[0] if args else None, sys.stderr)


def _add_logger_name(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add the name passed to :func:`get_logger`, when there was one."""
    name = getattr(logger, "name", None)
    if name:
        event_dict.setdefault("logger", name)
    return event_dict


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger.

    The logger is lazy: it picks up whatever :func:`configure_logging` set
    at the time of each call, so module-level loggers are safe.

    Args:
        name: Logger name (usually __name__)
    """
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs of the current task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Values bound by an enclosing scope under the same keys are restored on
    exit.

    Example:
        async with LogContext(source="primary"):
            logger.info("fetch.succeeded")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs
        self._bound: AbstractContextManager[None] | None = None

    def __enter__(self) -> LogContext:
        self._bound = structlog.contextvars.bound_contextvars(**self._context)
        self._bound.__enter__()
        return self

    def __exit__(self, *args: Any) -> None:
        if self._bound is not None:
            self._bound.__exit__(*args)
            self._bound = None

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *args: Any) -> None:
        self.__exit__(*args)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
