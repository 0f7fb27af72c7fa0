"""Normalized spec and change-report data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ChangeType(StrEnum):
    """Classification of a node or variant between two runs."""

    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


@dataclass(frozen=True)
class NormalizedSpec:
    """Persisted record pairing a node id with its normalized content and hash.

    Rebuilt from scratch every run; never mutated after creation.
    ``variants`` is only set for variant-set nodes, one entry per child in
    the order the API returned them.
    """

    id: str
    name: str
    type: str
    source_file: str
    file_key: str
    node: dict[str, Any]
    content_hash: str
    generated_at: str  # ISO-8601 UTC
    variants: tuple[NormalizedSpec, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dict (the on-disk record format)."""
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "source_file": self.source_file,
            "file_key": self.file_key,
            "node": self.node,
            "content_hash": self.content_hash,
            "generated_at": self.generated_at,
        }
        if self.variants is not None:
            data["variants"] = [variant.to_dict() for variant in self.variants]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NormalizedSpec:
        """Rebuild a spec from ``to_dict`` output.

        Raises:
            KeyError:  a required field is missing.
            TypeError: the record is not shaped like a spec.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Spec record must be an object, got {type(data).__name__}")
        raw_variants = data.get("variants")
        variants = None
        if raw_variants is not None:
            if not isinstance(raw_variants, list):
                raise TypeError("Spec 'variants' must be a list")
            variants = tuple(cls.from_dict(item) for item in raw_variants)
        node = data["node"]
        if not isinstance(node, dict):
            raise TypeError("Spec 'node' must be an object")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            type=str(data["type"]),
            source_file=str(data.get("source_file", "")),
            file_key=str(data.get("file_key", "")),
            node=node,
            content_hash=str(data["content_hash"]),
            generated_at=str(data.get("generated_at", "")),
            variants=variants,
        )


@dataclass(frozen=True)
class ChangeDetectionResult:
    """Outcome of comparing persisted specs against freshly built ones."""

    added: tuple[str, ...] = ()
    changed: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.changed or self.removed)


@dataclass(frozen=True)
class PropertyChange:
    """A single path-addressed difference between two normalized nodes.

    Values are display strings, never raw structures.
    """

    path: str  # e.g. "fills[0].color", "style.fontSize"
    previous_value: str
    new_value: str


@dataclass(frozen=True)
class VariantChange:
    """Change to one variant of a variant-set node."""

    variant_id: str
    variant_name: str
    change_type: ChangeType
    property_changes: tuple[PropertyChange, ...] = ()


@dataclass(frozen=True)
class SpecDiff:
    """Property changes of a spec, returned alongside its variant changes."""

    property_changes: tuple[PropertyChange, ...] = ()
    variant_changes: tuple[VariantChange, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.property_changes and not self.variant_changes


@dataclass
class ChangelogEntry:
    """One tracked node's change, as handed to changelog renderers."""

    change_type: ChangeType
    node_id: str
    name: str
    source_file: str
    property_changes: list[PropertyChange] = field(default_factory=list)
    variant_changes: list[VariantChange] = field(default_factory=list)
