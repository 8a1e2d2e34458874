"""
stake_pool_updater.observability.logging

Structured logging configuration for the service.

Responsibilities:
- Configure `structlog` for JSON logs on stdout.
- Provide a small wrapper for obtaining bound loggers.
- Bind watcher cycle/pool identifiers into contextvars.
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


def configure_logging(*, service_name: str, level: str) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def cycle_context() -> Iterator[str]:
    """Bind a fresh `cycle_id` for the duration of one watcher cycle."""

    cycle_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(cycle_id=cycle_id):
        yield cycle_id


def log_context(**fields: Any):
    # Previous values are restored on exit, so nesting is safe.
    return structlog.contextvars.bound_contextvars(**fields)


# --- Module Notes -----------------------------------------------------------
# The watcher runs as a background task, so it has its own contextvars copy and never
# sees request-scoped fields bound by `observability.middleware`.
