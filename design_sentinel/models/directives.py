"""Directive and fetch request data structures."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class Directive:
    """Declaration that a source file tracks one or more nodes of a Figma file.

    Produced by the directive scanner, consumed by the fetch client.
    """

    source_file: str
    file_key: str
    node_ids: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.file_key:
            raise ValueError("Directive file_key must not be empty")
        if not self.node_ids:
            raise ValueError(f"Directive for file {self.file_key} has no node ids")
        # Accept any sequence from callers but store it immutably.
        object.__setattr__(self, "node_ids", tuple(self.node_ids))


@dataclass(frozen=True)
class FetchRequest:
    """All node ids requested from one file, batched into a single API call."""

    file_key: str
    node_ids: tuple[str, ...]
    source_files: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class FetchedNode:
    """A raw node returned by the API together with every file that tracks it."""

    node_id: str
    file_key: str
    node: dict[str, Any]
    source_files: tuple[str, ...] = ()
