"""Shared fixtures for Design Sentinel integration tests.

Provides a fake Figma API (served through ``httpx.MockTransport``) whose
documents tests can edit between runs, plus factories for raw nodes and
directives, so full runs can be exercised without network access.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from design_sentinel.client.figma import FigmaClient
from design_sentinel.models.config import FetchPolicy, SentinelConfig, StoreConfig
from design_sentinel.models.directives import Directive
from design_sentinel.specs.store import SpecStore

# ---------------------------------------------------------------------------
# Node factory helpers
# ---------------------------------------------------------------------------


def make_frame(
    node_id: str = "1:2",
    name: str = "Card",
    corner_radius: int = 8,
    fill: dict[str, float] | None = None,
    x: float = 0,
) -> dict[str, Any]:
    """Create a raw FRAME node with one volatile and a few visual properties."""
    return {
        "id": node_id,
        "name": name,
        "type": "FRAME",
        "absoluteBoundingBox": {"x": x, "y": 0, "width": 320, "height": 200},
        "cornerRadius": corner_radius,
        "fills": [{"type": "SOLID", "color": fill or {"r": 1, "g": 1, "b": 1, "a": 1}}],
    }


def make_component_set(
    node_id: str = "10:1",
    name: str = "Button",
    variants: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    return {
        "id": node_id,
        "name": name,
        "type": "COMPONENT_SET",
        "children": variants
        if variants is not None
        else [make_variant("10:2", "Variant=Primary"), make_variant("10:3", "Variant=Secondary")],
    }


def make_variant(node_id: str, name: str, fill: dict[str, float] | None = None) -> dict[str, Any]:
    return {
        "id": node_id,
        "name": name,
        "type": "COMPONENT",
        "fills": [{"type": "SOLID", "color": fill or {"r": 0, "g": 0.4, "b": 1, "a": 1}}],
    }


def make_directive(file_key: str = "FILE1", *node_ids: str, source_file: str = "src/Card.tsx") -> Directive:
    return Directive(source_file=source_file, file_key=file_key, node_ids=node_ids or ("1:2",))


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


class FakeFigmaAPI:
    """In-memory Figma nodes endpoint.

    ``files`` maps file key to ``{node_id: raw node}``; ``failures`` maps a
    file key to a status code returned instead of the documents.
    """

    def __init__(self) -> None:
        self.files: dict[str, dict[str, dict[str, Any]]] = {}
        self.failures: dict[str, int] = {}
        self.requests: list[httpx.Request] = []

    def put(self, file_key: str, *nodes: dict[str, Any]) -> None:
        self.files.setdefault(file_key, {}).update({node["id"]: copy.deepcopy(node) for node in nodes})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        file_key = request.url.path.split("/")[3]
        if file_key in self.failures:
            status = self.failures[file_key]
            return httpx.Response(status, json={"status": status, "err": "injected failure"})
        if file_key not in self.files:
            return httpx.Response(404, json={"status": 404, "err": "Not found"})
        documents = self.files[file_key]
        ids = request.url.params["ids"].split(",")
        return httpx.Response(
            200,
            json={
                "name": file_key,
                "nodes": {
                    node_id: {"document": documents[node_id]} if node_id in documents else None
                    for node_id in ids
                },
            },
        )


async def _no_sleep(delay: float) -> None:
    return None


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def figma_api() -> FakeFigmaAPI:
    return FakeFigmaAPI()


@pytest.fixture
def specs_dir(tmp_path: Path) -> Path:
    return tmp_path / "design-specs"


@pytest.fixture
def store(specs_dir: Path) -> SpecStore:
    return SpecStore(specs_dir)


@pytest.fixture
def config(specs_dir: Path) -> SentinelConfig:
    return SentinelConfig(store=StoreConfig(specs_dir=str(specs_dir)))


@pytest.fixture
def make_client(figma_api: FakeFigmaAPI) -> Callable[..., FigmaClient]:
    def _factory(policy: FetchPolicy = FetchPolicy.FAIL_FAST) -> FigmaClient:
        return FigmaClient(
            "test-token",
            transport=httpx.MockTransport(figma_api.handler),
            sleep=_no_sleep,
            policy=policy,
        )

    return _factory
