"""Error aggregation for the aggregate fetch policy.

Collects typed errors with their file/node context so a run can finish every
file group and report all failures at once, grouped by error code and by
file key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from design_sentinel.errors import SentinelError


@dataclass(frozen=True)
class ErrorContext:
    """Where an error happened."""

    file_key: str | None = None
    node_id: str | None = None


@dataclass(frozen=True)
class AggregatedError:
    error: SentinelError
    context: ErrorContext
    recorded_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))


@dataclass
class ErrorGroup:
    """Errors sharing one grouping key (an error code or a file key)."""

    key: str
    errors: list[AggregatedError] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.errors)


@dataclass
class ErrorSummary:
    by_code: list[ErrorGroup]
    by_file_key: list[ErrorGroup]
    total_errors: int


class ErrorAggregator:
    """Collects errors and success counts across a run."""

    def __init__(self) -> None:
        self._errors: list[AggregatedError] = []
        self._success_count = 0

    def add_error(self, error: SentinelError, context: ErrorContext | None = None) -> None:
        self._errors.append(AggregatedError(error=error, context=context or ErrorContext()))

    def add_success(self, count: int = 1) -> None:
        self._success_count += count

    @property
    def errors(self) -> list[AggregatedError]:
        return list(self._errors)

    @property
    def success_count(self) -> int:
        return self._success_count

    @property
    def failure_count(self) -> int:
        return len(self._errors)

    def failed_file_keys(self) -> set[str]:
        """File keys whose whole group failed (errors without a node id)."""
        return {
            entry.context.file_key
            for entry in self._errors
            if entry.context.file_key is not None and entry.context.node_id is None
        }

    def failed_node_ids(self) -> set[str]:
        return {entry.context.node_id for entry in self._errors if entry.context.node_id is not None}

    def summary(self) -> ErrorSummary:
        """Group errors by code and by file key, in first-seen order."""
        by_code: dict[str, ErrorGroup] = {}
        by_file: dict[str, ErrorGroup] = {}
        for entry in self._errors:
            code = str(entry.error.code)
            by_code.setdefault(code, ErrorGroup(key=code)).errors.append(entry)
            file_key = entry.context.file_key or "unknown"
            by_file.setdefault(file_key, ErrorGroup(key=file_key)).errors.append(entry)
        return ErrorSummary(
            by_code=list(by_code.values()),
            by_file_key=list(by_file.values()),
            total_errors=len(self._errors),
        )
