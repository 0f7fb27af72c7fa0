"""Run orchestration for Design Sentinel.

One run wires the components in order:
    fetch → build specs → load persisted specs → detect changes
          → changelog entries → persist (unless dry run)

The persisted store is read once at the start and written once per changed
node at the end; nothing is written when the fetch fails under the fail-fast
policy.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from design_sentinel.client.aggregator import AggregatedError, ErrorAggregator
from design_sentinel.client.figma import FigmaClient
from design_sentinel.client.stats import FetchStats
from design_sentinel.config import load_config
from design_sentinel.diff.changelog import build_changelog_entries
from design_sentinel.errors import SentinelError, ValidationError
from design_sentinel.models.config import FetchPolicy, SentinelConfig
from design_sentinel.models.directives import Directive
from design_sentinel.models.specs import ChangeDetectionResult, ChangelogEntry, NormalizedSpec
from design_sentinel.observability.logging import bind_run_id, clear_run_id, get_logger, setup_logging
from design_sentinel.specs.detector import detect_changes
from design_sentinel.specs.hashing import build_spec
from design_sentinel.specs.normalizer import Normalizer
from design_sentinel.specs.store import SpecStore

_log = get_logger("app")


@dataclass
class SentinelResult:
    """Everything one run produced."""

    change_result: ChangeDetectionResult
    specs: dict[str, NormalizedSpec]
    entries: list[ChangelogEntry]
    stats: FetchStats
    aggregator: ErrorAggregator = field(default_factory=ErrorAggregator)
    run_id: str | None = None

    @property
    def errors(self) -> list[AggregatedError]:
        return self.aggregator.errors

    @property
    def has_changes(self) -> bool:
        return self.change_result.has_changes


def load_directives(path: str | Path) -> list[Directive]:
    """Read a directives manifest.

    The manifest is a JSON list of objects with ``source_file``,
    ``file_key`` and ``node_ids`` keys.

    Raises:
        ValidationError: the file is missing, unparseable, or malformed.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValidationError(f"Cannot read directives file {path}: {exc}") from exc
    except ValueError as exc:
        raise ValidationError(f"Directives file {path} is not valid JSON: {exc}") from exc

    if not isinstance(raw, list):
        raise ValidationError(f"Directives file {path} must contain a JSON list")

    directives: list[Directive] = []
    for index, item in enumerate(raw):
        try:
            node_ids = item["node_ids"]
            if isinstance(node_ids, str):
                node_ids = [node_ids]
            directives.append(
                Directive(
                    source_file=str(item.get("source_file", path.name)),
                    file_key=str(item["file_key"]),
                    node_ids=tuple(str(node_id) for node_id in node_ids),
                )
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ValidationError(f"Invalid directive #{index} in {path}: {exc}") from exc
    return directives


class SentinelRunner:
    """Runs one change-detection pass against a spec store.

    Args:
        config: Loaded configuration.
        client: Fetch client; its policy decides fail-fast vs aggregate.
        store:  Persisted spec store.
    """

    def __init__(self, config: SentinelConfig, client: FigmaClient, store: SpecStore) -> None:
        self._config = config
        self._client = client
        self._store = store
        self._normalizer = Normalizer.from_config(config.normalizer)

    async def run(self, directives: Iterable[Directive], *, dry_run: bool = False) -> SentinelResult:
        run_id = bind_run_id()
        try:
            return await self._run(list(directives), dry_run=dry_run, run_id=run_id)
        finally:
            clear_run_id()

    async def _run(self, directives: list[Directive], *, dry_run: bool, run_id: str) -> SentinelResult:
        _log.info("sentinel_run_started", directives=len(directives), dry_run=dry_run)

        if not directives:
            # Nothing tracked: leave the store untouched.
            _log.info("no_directives_nothing_to_do")
            return SentinelResult(
                change_result=ChangeDetectionResult(),
                specs={},
                entries=[],
                stats=FetchStats(),
                run_id=run_id,
            )

        # --- 1. Fetch -----------------------------------------------------
        stats = FetchStats()
        fetched = await self._client.fetch_nodes(directives, stats=stats)

        # --- 2. Build specs -----------------------------------------------
        fresh: dict[str, NormalizedSpec] = {}
        for node in fetched.nodes:
            source_file = node.source_files[0] if node.source_files else ""
            fresh[node.node_id] = build_spec(node.node, source_file, node.file_key, self._normalizer)

        # --- 3. Persisted specs -------------------------------------------
        persisted = self._store.load_all()
        comparable = self._protect_failed(persisted, fresh, fetched.aggregator)

        # --- 4. Detect and describe ---------------------------------------
        change_result = detect_changes(comparable, fresh)
        entries = build_changelog_entries(change_result, fresh, comparable)
        _log.info(
            "changes_detected",
            added=len(change_result.added),
            changed=len(change_result.changed),
            removed=len(change_result.removed),
        )

        # --- 5. Persist ---------------------------------------------------
        if dry_run:
            _log.info("dry_run_skip_persist")
        else:
            self._persist(change_result, fresh)

        _log.info("sentinel_run_finished", errors=len(fetched.errors), requests=stats.requests)
        return SentinelResult(
            change_result=change_result,
            specs=fresh,
            entries=entries,
            stats=stats,
            aggregator=fetched.aggregator,
            run_id=run_id,
        )

    def _protect_failed(
        self,
        persisted: dict[str, NormalizedSpec],
        fresh: dict[str, NormalizedSpec],
        aggregator: ErrorAggregator,
    ) -> dict[str, NormalizedSpec]:
        """Hide persisted specs whose node could not be fetched this run.

        Without this a failed file group would report every one of its
        tracked nodes as removed.
        """
        if not aggregator.failure_count:
            return persisted
        failed_files = aggregator.failed_file_keys()
        failed_nodes = aggregator.failed_node_ids()
        kept = {
            node_id: spec
            for node_id, spec in persisted.items()
            if node_id in fresh or (spec.file_key not in failed_files and node_id not in failed_nodes)
        }
        if len(kept) != len(persisted):
            _log.warning("persisted_specs_protected", count=len(persisted) - len(kept))
        return kept

    def _persist(self, change_result: ChangeDetectionResult, fresh: dict[str, NormalizedSpec]) -> None:
        for node_id in (*change_result.added, *change_result.changed):
            self._store.save(fresh[node_id])
        for node_id in change_result.removed:
            self._store.remove(node_id)
        _log.info(
            "specs_persisted",
            saved=len(change_result.added) + len(change_result.changed),
            removed=len(change_result.removed),
        )


async def run_sentinel(
    directives: Iterable[Directive],
    config: SentinelConfig | None = None,
    *,
    client: FigmaClient | None = None,
    store: SpecStore | None = None,
    dry_run: bool = False,
    **client_kwargs: Any,
) -> SentinelResult:
    """Run one pass, building the client and store from *config* when not given.

    A client created here is closed before returning; a caller-supplied one
    is left open.
    """
    config = config or load_config()
    store = store or SpecStore(config.store.specs_dir)
    owns_client = client is None
    if client is None:
        client = FigmaClient.from_config(config.figma, **client_kwargs)
    try:
        return await SentinelRunner(config, client, store).run(directives, dry_run=dry_run)
    finally:
        if owns_client:
            await client.aclose()


async def main() -> None:
    """Command-line entry point: run once against the configured manifest."""
    config = load_config()
    setup_logging(config.log.level)
    try:
        directives = load_directives(config.run.directives_file)
        result = await run_sentinel(directives, config, dry_run=config.run.dry_run)
    except SentinelError as exc:
        _log.critical("sentinel_run_failed", code=str(exc.code), error=str(exc))
        raise SystemExit(1) from exc

    if result.errors and config.figma.fetch_policy == FetchPolicy.AGGREGATE:
        summary = result.aggregator.summary()
        _log.error(
            "sentinel_run_incomplete",
            errors=summary.total_errors,
            by_code={group.key: group.count for group in summary.by_code},
            by_file_key={group.key: group.count for group in summary.by_file_key},
        )
        raise SystemExit(1)
    # Exit 2 signals "changes found" to CI.
    if result.has_changes:
        raise SystemExit(2)
