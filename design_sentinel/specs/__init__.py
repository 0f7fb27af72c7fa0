"""Spec building, persistence and change detection.

Submodules:
    normalizer -- strips volatile properties, canonical JSON serialisation.
    hashing    -- content hashes and NormalizedSpec construction (incl. variants).
    store      -- one JSON record per tracked node id on local disk.
    detector   -- added/changed/removed classification.
"""

from design_sentinel.specs.detector import detect_changes, index_specs
from design_sentinel.specs.hashing import VARIANT_SET_TYPE, build_spec, compute_content_hash
from design_sentinel.specs.normalizer import Normalizer, normalize_node, to_canonical_json
from design_sentinel.specs.store import SpecStore, sanitize_node_id

__all__ = [
    "VARIANT_SET_TYPE",
    "Normalizer",
    "SpecStore",
    "build_spec",
    "compute_content_hash",
    "detect_changes",
    "index_specs",
    "normalize_node",
    "sanitize_node_id",
    "to_canonical_json",
]
