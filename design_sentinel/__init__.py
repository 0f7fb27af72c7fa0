"""Design Sentinel: tracks Figma design nodes and reports what changed.

Fetches tracked nodes from the Figma REST API, reduces each to a normalized,
hashed spec, compares it against the specs persisted by the previous run,
and produces structured diffs for changelog renderers.
"""

from design_sentinel.app import SentinelResult, SentinelRunner, load_directives, run_sentinel
from design_sentinel.client import FetchResult, FetchStats, FigmaClient
from design_sentinel.errors import (
    AuthenticationError,
    ErrorCode,
    NetworkError,
    NotFoundError,
    RateLimitError,
    SentinelError,
    ServerError,
    ValidationError,
)
from design_sentinel.models import Directive, FetchPolicy, NormalizedSpec, SentinelConfig

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "Directive",
    "ErrorCode",
    "FetchPolicy",
    "FetchResult",
    "FetchStats",
    "FigmaClient",
    "NetworkError",
    "NormalizedSpec",
    "NotFoundError",
    "RateLimitError",
    "SentinelConfig",
    "SentinelError",
    "SentinelResult",
    "SentinelRunner",
    "ServerError",
    "ValidationError",
    "load_directives",
    "run_sentinel",
]
