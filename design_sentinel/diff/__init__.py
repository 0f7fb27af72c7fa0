"""Structural diffing of normalized specs.

Submodules:
    values    -- ValueKind tagging and display formatting (colors, truncation).
    engine    -- path-addressed property diff and per-variant diff.
    changelog -- structured entries for changelog renderers.
"""

from design_sentinel.diff.changelog import build_changelog_entries
from design_sentinel.diff.engine import diff_nodes, diff_spec, diff_variants
from design_sentinel.diff.values import MISSING, ValueKind, format_color, format_value, kind_of

__all__ = [
    "MISSING",
    "ValueKind",
    "build_changelog_entries",
    "diff_nodes",
    "diff_spec",
    "diff_variants",
    "format_color",
    "format_value",
    "kind_of",
]
