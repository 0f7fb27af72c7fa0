"""Structured changelog entries for downstream renderers.

Renderers (markdown, PR bodies) consume these entries as-is and never
re-derive diffs.
"""

from __future__ import annotations

from collections.abc import Mapping

from design_sentinel.diff.engine import diff_spec
from design_sentinel.models.specs import ChangeDetectionResult, ChangelogEntry, ChangeType, NormalizedSpec


def build_changelog_entries(
    result: ChangeDetectionResult,
    fresh: Mapping[str, NormalizedSpec],
    persisted: Mapping[str, NormalizedSpec],
) -> list[ChangelogEntry]:
    """Build one entry per added, changed and removed node id.

    Added entries come from *fresh*, removed entries from *persisted*;
    changed entries carry the full SpecDiff.  Ids missing from the map they
    need are skipped.
    """
    entries: list[ChangelogEntry] = []

    for node_id in result.added:
        spec = fresh.get(node_id)
        if spec is not None:
            entries.append(
                ChangelogEntry(
                    change_type=ChangeType.ADDED,
                    node_id=node_id,
                    name=spec.name,
                    source_file=spec.source_file,
                )
            )

    for node_id in result.changed:
        old_spec = persisted.get(node_id)
        new_spec = fresh.get(node_id)
        if old_spec is None or new_spec is None:
            continue
        spec_diff = diff_spec(old_spec, new_spec)
        entries.append(
            ChangelogEntry(
                change_type=ChangeType.CHANGED,
                node_id=node_id,
                name=new_spec.name,
                source_file=new_spec.source_file,
                property_changes=list(spec_diff.property_changes),
                variant_changes=list(spec_diff.variant_changes),
            )
        )

    for node_id in result.removed:
        spec = persisted.get(node_id)
        if spec is not None:
            entries.append(
                ChangelogEntry(
                    change_type=ChangeType.REMOVED,
                    node_id=node_id,
                    name=spec.name,
                    source_file=spec.source_file,
                )
            )

    return entries
