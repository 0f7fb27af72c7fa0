"""Core data structures for Design Sentinel."""

from design_sentinel.models.config import FetchPolicy, SentinelConfig
from design_sentinel.models.directives import Directive, FetchedNode, FetchRequest
from design_sentinel.models.specs import (
    ChangeDetectionResult,
    ChangelogEntry,
    ChangeType,
    NormalizedSpec,
    PropertyChange,
    SpecDiff,
    VariantChange,
)

__all__ = [
    "ChangeDetectionResult",
    "ChangeType",
    "ChangelogEntry",
    "Directive",
    "FetchPolicy",
    "FetchRequest",
    "FetchedNode",
    "NormalizedSpec",
    "PropertyChange",
    "SentinelConfig",
    "SpecDiff",
    "VariantChange",
]
