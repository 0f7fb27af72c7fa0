"""Figma API fetch layer.

Exports:
    FigmaClient       -- batched, concurrency-bounded node fetching with
                         rate-limit-aware retry.
    FetchResult       -- nodes (and, under the aggregate policy, errors) of a run.
    FetchStats        -- run-level request/retry counters.
    ErrorAggregator   -- collects typed errors with file/node context.
    group_directives  -- batches directives into one request per file key.
"""

from design_sentinel.client.aggregator import AggregatedError, ErrorAggregator, ErrorContext
from design_sentinel.client.figma import FetchResult, FigmaClient, group_directives
from design_sentinel.client.headers import RateLimitHints, parse_error_response, parse_rate_limit_headers
from design_sentinel.client.stats import FetchStats

__all__ = [
    "AggregatedError",
    "ErrorAggregator",
    "ErrorContext",
    "FetchResult",
    "FetchStats",
    "FigmaClient",
    "RateLimitHints",
    "group_directives",
    "parse_error_response",
    "parse_rate_limit_headers",
]
