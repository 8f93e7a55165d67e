"""
Structured logging for Rookie Guide.

The API, the CLI and the core all log through structlog with one
configuration. Events are snake_case verbs (``checklist_forked``,
``step_updated``) with ids as key/value pairs:

    >>> configure_logging(level="INFO", json_format=True, service="rookie-guide-api")
    >>> logger = get_logger(__name__)
    >>> logger.info("checklist_forked", checklist_id="c-1", steps=4)

Output is JSON with ECS-style ``@timestamp`` / ``log.level`` keys when
stdout is not a terminal, and colored key/value lines when it is.

Per-request identifiers are bound with :class:`LogContext`:

    >>> with LogContext(request_id="r-1", user_id="alice"):
    ...     logger.info("step_updated", step_index=2)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_service = "rookie-guide"

# structlog key → ECS field
_ECS_RENAMES = {"timestamp": "@timestamp", "level": "log.level"}


def _stamp_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service)
    return event_dict


def _ecs_keys(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for source, target in _ECS_RENAMES.items():
        if source in event_dict:
            event_dict[target] = event_dict.pop(source)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "rookie-guide",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog (and the stdlib root logger) for this process.

    Args:
        level: Minimum level name, e.g. ``"DEBUG"`` or ``"WARNING"``.
        json_format: Force JSON (True) or console (False) output;
            ``None`` picks JSON unless stdout is a TTY.
        service: Value of the ``service.name`` key on every event.
        add_timestamp: Add an ISO-8601 timestamp to every event.
    """
    global _service
    _service = service
    threshold = logging.getLevelName(level.upper())
    if not isinstance(threshold, int):
        threshold = logging.INFO
    if json_format is None:
        json_format = not sys.stdout.isatty()

    processors: list[Processor] = []
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _stamp_service,
    ]
    if json_format:
        processors += [
            _ecs_keys,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    # Loggers are not cached: the CLI test runner swaps sys.stdout per call.
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # uvicorn logs through the stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=threshold)


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger; call as ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def clear_context() -> None:
    """Drop every key bound with :class:`LogContext`."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind key/value pairs to every event logged inside the block.

    ``None`` values are skipped, so optional ids can be passed straight
    through.
    """

    def __init__(self, **values: Any) -> None:
        self._values = {key: value for key, value in values.items() if value is not None}

    def __enter__(self) -> LogContext:
        structlog.contextvars.bind_contextvars(**self._values)
        return self

    def __exit__(self, *exc_info: object) -> None:
        structlog.contextvars.unbind_contextvars(*self._values)


__all__ = [
    "configure_logging",
    "get_logger",
    "clear_context",
    "LogContext",
]
