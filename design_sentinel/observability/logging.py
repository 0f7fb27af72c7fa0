"""Structured logging configuration using structlog.

CI runs emit one JSON object per line on stderr so workflow logs stay
machine-readable; local runs can opt into the coloured console renderer.
Tokens and raw node payloads must never be passed as log fields.
"""

from __future__ import annotations

import logging
import sys
from uuid import uuid4

import structlog


def setup_logging(level: str = "info", *, json_output: bool = True) -> None:
    """Configure structlog output on stderr at *level*."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]


def bind_run_id(run_id: str | None = None) -> str:
    """Attach a run id to every log line emitted by the current context.

    Returns the bound id so callers can report it.
    """
    run_id = run_id or uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(run_id=run_id)
    return run_id


def clear_run_id() -> None:
    structlog.contextvars.unbind_contextvars("run_id")
