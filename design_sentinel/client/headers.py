"""Parsing of Figma rate-limit headers and error response bodies.

Figma answers errors in two body shapes::

    {"status": 400, "err": "Invalid parameters"}
    {"error": true, "status": 404, "message": "Not found"}

and may attach these headers to a 429 response:

    Retry-After              -- seconds to wait before retrying
    X-Figma-Plan-Tier        -- plan of the token owner (e.g. "starter")
    X-Figma-Rate-Limit-Type  -- which limit was hit (e.g. "low", "high")
    X-Figma-Upgrade-Link     -- URL to upgrade the plan
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass

import httpx

_MAX_RAW_MESSAGE_LEN = 200


@dataclass(frozen=True)
class RateLimitHints:
    """Normalized retry/backoff hints from a rate-limited response."""

    retry_after_seconds: int | None = None
    plan_tier: str | None = None
    rate_limit_type: str | None = None
    upgrade_link: str | None = None


@dataclass(frozen=True)
class ErrorDetails:
    """Status, best-effort message and rate-limit hints of a failed response."""

    status_code: int
    message: str
    hints: RateLimitHints


def _parse_retry_after(value: str | None) -> int | None:
    if value is None:
        return None
    value = value.strip()
    try:
        seconds = int(value)
    except ValueError:
        try:
            seconds = int(float(value))
        except ValueError:
            return None
    if seconds < 0:
        return None
    return seconds


def parse_rate_limit_headers(headers: Mapping[str, str]) -> RateLimitHints:
    """Extract rate-limit hints from *headers*.

    Header lookup is case-insensitive when given ``httpx.Headers``.  A
    ``Retry-After`` that is not a non-negative number of seconds is ignored.
    """
    return RateLimitHints(
        retry_after_seconds=_parse_retry_after(headers.get("Retry-After")),
        plan_tier=headers.get("X-Figma-Plan-Tier") or None,
        rate_limit_type=headers.get("X-Figma-Rate-Limit-Type") or None,
        upgrade_link=headers.get("X-Figma-Upgrade-Link") or None,
    )


def _message_from_payload(payload: object) -> str | None:
    if not isinstance(payload, dict):
        return None
    # {"status": ..., "err": "..."}
    if isinstance(payload.get("err"), str):
        return payload["err"]
    # {"error": true, "status": ..., "message": "..."}
    if payload.get("error") is True and isinstance(payload.get("message"), str):
        return payload["message"]
    if isinstance(payload.get("message"), str):
        return payload["message"]
    if isinstance(payload.get("error"), str):
        return payload["error"]
    return None


def parse_error_response(response: httpx.Response) -> ErrorDetails:
    """Build ErrorDetails for a non-success *response*.

    Falls back to ``HTTP <status>: <reason>`` when the body carries no
    recognisable message; short non-JSON bodies are used verbatim.
    """
    status = response.status_code
    message = f"HTTP {status}: {response.reason_phrase}"

    text = response.text
    if text:
        try:
            payload = json.loads(text)
        except ValueError:
            if len(text) <= _MAX_RAW_MESSAGE_LEN:
                message = text
        else:
            message = _message_from_payload(payload) or message

    return ErrorDetails(
        status_code=status,
        message=message,
        hints=parse_rate_limit_headers(response.headers),
    )
