"""Observability helpers: structured logging setup and run-scoped context."""

from design_sentinel.observability.logging import bind_run_id, clear_run_id, get_logger, setup_logging

__all__ = ["bind_run_id", "clear_run_id", "get_logger", "setup_logging"]
