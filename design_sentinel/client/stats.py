"""Run-level fetch counters.

A FetchStats instance is created per run (or passed in by the caller) and
threaded through every request, so counters never live in module state.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class FetchStats:
    """Counters accumulated while fetching nodes."""

    groups: int = 0
    requests: int = 0
    retries: int = 0
    rate_limited: int = 0
    retry_wait_seconds: float = 0.0
    nodes_fetched: int = 0
    failures: int = 0
    warnings: list[str] = field(default_factory=list)

    def record_retry(self, delay_seconds: float) -> None:
        self.rate_limited += 1
        self.retries += 1
        self.retry_wait_seconds += delay_seconds

    def warn(self, message: str) -> None:
        self.warnings.append(message)
