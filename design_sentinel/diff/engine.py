"""Recursive structural diff over normalized node trees.

Produces PropertyChange records addressed by path: ``.key`` for object
descent (no leading dot at the root) and ``[i]`` for array indexes, e.g.
``fills[0].color`` or ``style.fontSize``.  A difference at the root itself is
reported under the path ``value``.

Walk rules, dispatched on the ValueKind of both sides:

* both absent (missing or null)  -> nothing
* exactly one side absent        -> one change, absent side shown as "undefined"
* different kinds                -> one change, no recursion
* two arrays                     -> index by index up to the longer length
* two objects                    -> over the union of keys
* two scalars of the same kind   -> one change if unequal
"""

from __future__ import annotations

from typing import Any

from design_sentinel.diff.values import ABSENT_KINDS, MISSING, ValueKind, format_value, kind_of
from design_sentinel.models.specs import (
    ChangeType,
    NormalizedSpec,
    PropertyChange,
    SpecDiff,
    VariantChange,
)
from design_sentinel.specs.hashing import VARIANT_SET_TYPE

ROOT_PATH = "value"


def diff_nodes(old: Any, new: Any) -> list[PropertyChange]:
    """Return every point of difference between two normalized trees."""
    changes: list[PropertyChange] = []
    _walk(old, new, "", changes)
    return changes


def _child_path(base: str, key: str) -> str:
    return f"{base}.{key}" if base else key


def _emit(old: Any, new: Any, path: str, changes: list[PropertyChange]) -> None:
    changes.append(
        PropertyChange(
            path=path or ROOT_PATH,
            previous_value=format_value(old),
            new_value=format_value(new),
        )
    )


def _walk(old: Any, new: Any, path: str, changes: list[PropertyChange]) -> None:
    old_kind = kind_of(old)
    new_kind = kind_of(new)

    if old_kind in ABSENT_KINDS or new_kind in ABSENT_KINDS:
        if not (old_kind in ABSENT_KINDS and new_kind in ABSENT_KINDS):
            _emit(old, new, path, changes)
        return

    if old_kind != new_kind:
        _emit(old, new, path, changes)
        return

    if old_kind == ValueKind.ARRAY:
        for index in range(max(len(old), len(new))):
            _walk(
                old[index] if index < len(old) else MISSING,
                new[index] if index < len(new) else MISSING,
                f"{path}[{index}]",
                changes,
            )
        return

    if old_kind == ValueKind.OBJECT:
        for key in sorted(set(old) | set(new)):
            _walk(old.get(key, MISSING), new.get(key, MISSING), _child_path(path, key), changes)
        return

    if old != new:
        _emit(old, new, path, changes)


def _is_variant_spec(spec: NormalizedSpec) -> bool:
    return spec.type == VARIANT_SET_TYPE or spec.variants is not None


def diff_variants(old_spec: NormalizedSpec, new_spec: NormalizedSpec) -> list[VariantChange]:
    """Compare variants of two variant-set specs by variant id.

    Added and changed variants follow the new spec's order; removed variants
    follow the old spec's order.
    """
    old_variants = {variant.id: variant for variant in old_spec.variants or ()}
    new_variants = {variant.id: variant for variant in new_spec.variants or ()}
    changes: list[VariantChange] = []

    for variant_id, new_variant in new_variants.items():
        old_variant = old_variants.get(variant_id)
        if old_variant is None:
            changes.append(
                VariantChange(
                    variant_id=variant_id,
                    variant_name=new_variant.name,
                    change_type=ChangeType.ADDED,
                )
            )
        elif old_variant.content_hash != new_variant.content_hash:
            changes.append(
                VariantChange(
                    variant_id=variant_id,
                    variant_name=new_variant.name,
                    change_type=ChangeType.CHANGED,
                    property_changes=tuple(diff_nodes(old_variant.node, new_variant.node)),
                )
            )

    for variant_id, old_variant in old_variants.items():
        if variant_id not in new_variants:
            changes.append(
                VariantChange(
                    variant_id=variant_id,
                    variant_name=old_variant.name,
                    change_type=ChangeType.REMOVED,
                )
            )

    return changes


def diff_spec(old_spec: NormalizedSpec, new_spec: NormalizedSpec) -> SpecDiff:
    """Diff two specs of the same node.

    The parent's own property changes and its variant changes are returned
    side by side; variant changes are only computed for variant sets.
    """
    property_changes = diff_nodes(old_spec.node, new_spec.node)
    variant_changes: list[VariantChange] = []
    if _is_variant_spec(old_spec) or _is_variant_spec(new_spec):
        variant_changes = diff_variants(old_spec, new_spec)
    return SpecDiff(property_changes=tuple(property_changes), variant_changes=tuple(variant_changes))
