"""Value classification and display formatting for the diff engine.

Untyped JSON values are tagged with a ValueKind before comparison so the
structural walk dispatches on an explicit, closed set of kinds.  ``MISSING``
stands for an absent key or array slot and is distinct from JSON null.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

UNDEFINED_MARKER = "undefined"
MAX_DISPLAY_LEN = 50
_ELLIPSIS = "..."


class ValueKind(StrEnum):
    MISSING = "missing"
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


ABSENT_KINDS = frozenset({ValueKind.MISSING, ValueKind.NULL})


class _Missing:
    """Sentinel type for an absent key or array slot."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def kind_of(value: Any) -> ValueKind:
    """Tag *value* with its kind.

    Raises:
        TypeError: *value* is not JSON-shaped (caller contract violation).
    """
    if value is MISSING:
        return ValueKind.MISSING
    if value is None:
        return ValueKind.NULL
    # bool before number: bool is an int subclass.
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, Mapping):
        return ValueKind.OBJECT
    raise TypeError(f"Unsupported value type in node tree: {type(value).__name__}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_color(value: Any) -> bool:
    """True for objects with numeric ``r``, ``g`` and ``b`` channels."""
    return isinstance(value, Mapping) and all(_is_number(value.get(channel)) for channel in ("r", "g", "b"))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_color(color: Mapping[str, Any]) -> str:
    """Render a 0..1 float RGBA color as ``#RRGGBB`` with optional opacity.

    >>> format_color({"r": 1, "g": 0, "b": 0, "a": 0.5})
    '#FF0000 (50% opacity)'
    """
    r, g, b = (_round_half_up(color[channel] * 255) for channel in ("r", "g", "b"))
    hex_value = f"#{r:02X}{g:02X}{b:02X}"
    alpha = color.get("a")
    if _is_number(alpha) and alpha < 1:
        return f"{hex_value} ({_round_half_up(alpha * 100)}% opacity)"
    return hex_value


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _truncate(text: str) -> str:
    if len(text) > MAX_DISPLAY_LEN:
        return text[: MAX_DISPLAY_LEN - len(_ELLIPSIS)] + _ELLIPSIS
    return text


def format_value(value: Any) -> str:
    """Render *value* as a bounded-length display string."""
    kind = kind_of(value)
    if kind in ABSENT_KINDS:
        return UNDEFINED_MARKER
    if kind == ValueKind.OBJECT and is_color(value):
        return format_color(value)
    if kind in (ValueKind.OBJECT, ValueKind.ARRAY):
        return _truncate(json.dumps(value, separators=(",", ":"), ensure_ascii=False))
    if kind == ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind == ValueKind.NUMBER:
        return _format_number(value)
    return str(value)
