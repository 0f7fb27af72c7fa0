"""Typed error taxonomy for Design Sentinel.

Every failure the fetch layer can surface maps to exactly one subclass of
SentinelError.  Callers branch on ``code`` (closed set) and ``retryable``;
presentation layers build user-facing text from the structured fields.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error codes.  One code per error class."""

    VALIDATION = "VALIDATION_ERROR"
    AUTHENTICATION = "AUTH_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    SERVER = "SERVER_ERROR"
    NETWORK = "NETWORK_ERROR"


class SentinelError(Exception):
    """Base class for all Design Sentinel errors.

    Args:
        message:     Human-readable description.
        status_code: HTTP status of the response that triggered the error, if any.
    """

    code: ErrorCode
    retryable: bool = False

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(SentinelError):
    """Request rejected as malformed (400) or response body unusable."""

    code = ErrorCode.VALIDATION


class AuthenticationError(SentinelError):
    """Token missing, invalid, expired, or lacking access (401/403)."""

    code = ErrorCode.AUTHENTICATION

    def __init__(
        self,
        message: str,
        *,
        file_key: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.file_key = file_key


class NotFoundError(SentinelError):
    """A file (404) or a requested node inside a file does not exist."""

    code = ErrorCode.NOT_FOUND

    def __init__(
        self,
        message: str,
        *,
        file_key: str | None = None,
        node_id: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.file_key = file_key
        self.node_id = node_id


class RateLimitError(SentinelError):
    """Rate limit hit and the required wait exceeds the configured ceiling."""

    code = ErrorCode.RATE_LIMIT
    retryable = True

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        plan_tier: str | None = None,
        rate_limit_type: str | None = None,
        upgrade_link: str | None = None,
        file_key: str | None = None,
        status_code: int | None = 429,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.retry_after_seconds = retry_after_seconds
        self.plan_tier = plan_tier
        self.rate_limit_type = rate_limit_type
        self.upgrade_link = upgrade_link
        self.file_key = file_key


class ServerError(SentinelError):
    """The remote API answered with a 5xx status."""

    code = ErrorCode.SERVER


class NetworkError(SentinelError):
    """Transport-level failure, or retries exhausted without a usable response."""

    code = ErrorCode.NETWORK
    retryable = True
