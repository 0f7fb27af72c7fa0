"""Change detection between persisted and freshly built specs."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from design_sentinel.models.specs import ChangeDetectionResult, NormalizedSpec


def index_specs(specs: Iterable[NormalizedSpec]) -> dict[str, NormalizedSpec]:
    """Key specs by node id; a later spec for the same id replaces an earlier one."""
    return {spec.id: spec for spec in specs}


def detect_changes(
    persisted: Mapping[str, NormalizedSpec],
    fresh: Mapping[str, NormalizedSpec],
) -> ChangeDetectionResult:
    """Classify node ids as added, changed or removed.

    * added   -- in *fresh* with no persisted record.
    * changed -- in both, with a different content hash.
    * removed -- persisted but absent from *fresh*.

    Unchanged ids appear nowhere.  Each list is sorted, so the result does not
    depend on either mapping's iteration order.
    """
    added = sorted(node_id for node_id in fresh if node_id not in persisted)
    changed = sorted(
        node_id
        for node_id, spec in fresh.items()
        if node_id in persisted and persisted[node_id].content_hash != spec.content_hash
    )
    removed = sorted(node_id for node_id in persisted if node_id not in fresh)
    return ChangeDetectionResult(added=tuple(added), changed=tuple(changed), removed=tuple(removed))
