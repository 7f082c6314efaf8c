"""GroundStation — Structured logging configuration.

Uses structlog for structured, levelled logging with consistent key names
across triggers, items and channels.  All log entries include:
    - timestamp (ISO-8601)
    - level
    - module (Python logger name)
    - item / trigger kind (bound via context variables while executing)
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, WrappedLogger

_ctx_item_name: ContextVar[str | None] = ContextVar("item_name", default=None)
_ctx_item_kind: ContextVar[str | None] = ContextVar("item_kind", default=None)


def bind_item_context(item_name: str | None = None, item_kind: str | None = None) -> None:
    """Bind the executing sequence entity to the current async task."""
    if item_name is not None:
        _ctx_item_name.set(item_name)
    if item_kind is not None:
        _ctx_item_kind.set(item_kind)


def clear_item_context() -> None:
    _ctx_item_name.set(None)
    _ctx_item_kind.set(None)


# ---------------------------------------------------------------------------
# Custom processors
# ---------------------------------------------------------------------------


def _inject_context_vars(
    _logger: WrappedLogger, _method: str, event_dict: EventDict
) -> EventDict:
    """Add ContextVar values to every log record."""
    if (item_name := _ctx_item_name.get()) is not None:
        event_dict.setdefault("item_name", item_name)
    if (item_kind := _ctx_item_kind.get()) is not None:
        event_dict.setdefault("item_kind", item_kind)
    return event_dict


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def configure_logging(
    level: str = "info",
    format: str = "console",
    log_file: str | None = None,
) -> None:
    """Configure structlog and stdlib logging.

    Call once at start-up, before any log statements.

    Args:
        level:    One of debug, info, warning, error, critical.
        format:   ``"console"`` for human-readable output, ``"json"`` for
                  machine-readable structured logs.
        log_file: Optional path to write logs to in addition to stdout.
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _inject_context_vars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers = handlers
    root_logger.setLevel(level.upper())

    # paho logs every packet at debug level.
    for noisy in ("httpx", "httpcore", "paho", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger for *name*.

    Usage::

        log = get_logger(__name__)
        log.info("mqtt_published", topic="observatory/failures", qos=2)
    """
    return structlog.get_logger(name)
