"""Figma REST API client for fetching tracked nodes.

Directives are grouped by file key so each Figma file costs exactly one
``GET /v1/files/{key}/nodes`` call.  Calls run concurrently, bounded by a
semaphore; groups beyond the bound wait for a free slot.

Rate limiting (HTTP 429) is the only condition retried locally:

* ``Retry-After`` present  -> wait exactly that many seconds.
* ``Retry-After`` absent   -> wait ``initial_backoff * 2**attempt``.
* wait above the ceiling   -> abort at once with RateLimitError (never sleep
  for hours inside a CI job).
* ``max_retries`` retries used up -> NetworkError mentioning "max retries".

Every other failure maps to one typed error from ``design_sentinel.errors``
and propagates.  With ``FetchPolicy.FAIL_FAST`` the first failing group is
raised and the remaining in-flight groups are cancelled; with
``FetchPolicy.AGGREGATE`` every group completes and errors are returned in
``FetchResult.aggregator``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import httpx
import structlog

from design_sentinel.client.aggregator import AggregatedError, ErrorAggregator, ErrorContext
from design_sentinel.client.headers import RateLimitHints, parse_error_response, parse_rate_limit_headers
from design_sentinel.client.stats import FetchStats
from design_sentinel.config import resolve_token
from design_sentinel.errors import (
    AuthenticationError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    SentinelError,
    ServerError,
    ValidationError,
)
from design_sentinel.models.config import FetchPolicy, FigmaConfig
from design_sentinel.models.directives import Directive, FetchedNode, FetchRequest

_log = structlog.get_logger(component="client.figma")

FIGMA_API_BASE = "https://api.figma.com"
TOKEN_HEADER = "X-Figma-Token"

DEFAULT_MAX_CONCURRENCY = 5
DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF = 1.0
DEFAULT_MAX_RETRY_DELAY = 3600.0

SleepFn = Callable[[float], Awaitable[None]]


@dataclass
class FetchResult:
    """Nodes fetched in one run.

    ``nodes`` order does not follow request order; index by node id.
    ``aggregator`` only collects errors under ``FetchPolicy.AGGREGATE``.
    """

    nodes: list[FetchedNode] = field(default_factory=list)
    aggregator: ErrorAggregator = field(default_factory=ErrorAggregator)
    stats: FetchStats = field(default_factory=FetchStats)

    @property
    def errors(self) -> list[AggregatedError]:
        return self.aggregator.errors

    def by_id(self) -> dict[str, FetchedNode]:
        return {fetched.node_id: fetched for fetched in self.nodes}


def group_directives(directives: Iterable[Directive]) -> list[FetchRequest]:
    """Group directives by file key, deduplicating node ids.

    Node ids keep first-seen order.  Every source file that references a node
    is recorded, since one node may be tracked from several files.
    """
    node_ids: dict[str, list[str]] = {}
    sources: dict[str, dict[str, list[str]]] = {}

    for directive in directives:
        ids = node_ids.setdefault(directive.file_key, [])
        by_node = sources.setdefault(directive.file_key, {})
        for node_id in directive.node_ids:
            if node_id not in ids:
                ids.append(node_id)
            files = by_node.setdefault(node_id, [])
            if directive.source_file not in files:
                files.append(directive.source_file)

    return [
        FetchRequest(
            file_key=file_key,
            node_ids=tuple(ids),
            source_files=MappingProxyType(
                {node_id: tuple(files) for node_id, files in sources[file_key].items()}
            ),
        )
        for file_key, ids in node_ids.items()
    ]


class FigmaClient:
    """Async client for the Figma nodes endpoint.

    Args:
        token:           Figma personal access token, sent as ``X-Figma-Token``.
        api_base:        API root URL.
        max_concurrency: Maximum number of file groups fetched at once.
        max_retries:     Retries allowed per group after a 429 response.
        initial_backoff: Base wait in seconds when no ``Retry-After`` is sent.
        max_retry_delay: Ceiling in seconds; a longer required wait aborts.
        timeout:         Per-request timeout in seconds.
        policy:          Fail-fast or aggregate handling of group failures.
        transport:       Optional httpx transport (used by tests).
        sleep:           Coroutine used to wait out retry delays.
    """

    def __init__(
        self,
        token: str,
        *,
        api_base: str = FIGMA_API_BASE,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
        max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
        timeout: float = 30.0,
        policy: FetchPolicy = FetchPolicy.FAIL_FAST,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        if not token:
            raise AuthenticationError("A Figma access token is required")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self._max_concurrency = max_concurrency
        self._max_retries = max_retries
        self._initial_backoff = initial_backoff
        self._max_retry_delay = max_retry_delay
        self._policy = policy
        self._sleep: SleepFn = sleep or asyncio.sleep
        self._http = httpx.AsyncClient(
            base_url=api_base,
            headers={TOKEN_HEADER: token},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: FigmaConfig, **kwargs: Any) -> FigmaClient:
        """Build a client from configuration, resolving the token from the environment."""
        return cls(
            resolve_token(config),
            api_base=config.api_base,
            max_concurrency=config.max_concurrency,
            max_retries=config.max_retries,
            initial_backoff=config.initial_backoff_seconds,
            max_retry_delay=config.max_retry_delay_seconds,
            timeout=config.timeout_seconds,
            policy=config.fetch_policy,
            **kwargs,
        )

    @property
    def policy(self) -> FetchPolicy:
        return self._policy

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> FigmaClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_nodes(
        self,
        directives: Iterable[Directive],
        stats: FetchStats | None = None,
    ) -> FetchResult:
        """Fetch every node referenced by *directives*.

        Raises:
            SentinelError: under FAIL_FAST, the first group failure.
        """
        stats = stats if stats is not None else FetchStats()
        requests = group_directives(directives)
        stats.groups += len(requests)
        _log.info(
            "fetching_nodes",
            nodes=sum(len(request.node_ids) for request in requests),
            files=len(requests),
            policy=self._policy.value,
        )

        semaphore = asyncio.Semaphore(self._max_concurrency)
        if self._policy == FetchPolicy.AGGREGATE:
            nodes, aggregator = await self._fetch_aggregate(requests, semaphore, stats)
        else:
            nodes = await self._fetch_fail_fast(requests, semaphore, stats)
            aggregator = ErrorAggregator()
            aggregator.add_success(len(nodes))

        stats.nodes_fetched += len(nodes)
        _log.info(
            "nodes_fetched",
            nodes=aggregator.success_count,
            errors=aggregator.failure_count,
            requests=stats.requests,
            retries=stats.retries,
        )
        return FetchResult(nodes=nodes, aggregator=aggregator, stats=stats)

    # ------------------------------------------------------------------
    # Concurrency policies
    # ------------------------------------------------------------------

    async def _fetch_fail_fast(
        self,
        requests: list[FetchRequest],
        semaphore: asyncio.Semaphore,
        stats: FetchStats,
    ) -> list[FetchedNode]:
        if not requests:
            return []
        tasks = [
            asyncio.create_task(self._fetch_group_bounded(request, semaphore, stats, strict=True))
            for request in requests
        ]
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        # Group order decides which failure wins when several finished together.
        failed = [
            error
            for error in (task.exception() for task in tasks if task in done and not task.cancelled())
            if error is not None
        ]
        if failed:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            stats.failures += len(failed)
            error = failed[0]
            _log.error(
                "fetch_aborted",
                error_type=type(error).__name__,
                error=str(error),
                cancelled_groups=len(pending),
            )
            raise error

        nodes: list[FetchedNode] = []
        for task in tasks:
            found, _ = task.result()
            nodes.extend(found)
        return nodes

    async def _fetch_aggregate(
        self,
        requests: list[FetchRequest],
        semaphore: asyncio.Semaphore,
        stats: FetchStats,
    ) -> tuple[list[FetchedNode], ErrorAggregator]:
        aggregator = ErrorAggregator()
        outcomes = await asyncio.gather(
            *(self._fetch_group_bounded(request, semaphore, stats, strict=False) for request in requests),
            return_exceptions=True,
        )

        nodes: list[FetchedNode] = []
        for request, outcome in zip(requests, outcomes, strict=True):
            if isinstance(outcome, SentinelError):
                aggregator.add_error(outcome, ErrorContext(file_key=request.file_key))
                stats.failures += 1
                _log.warning(
                    "file_group_failed",
                    file_key=request.file_key,
                    code=str(outcome.code),
                    error=str(outcome),
                )
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            found, missing = outcome
            nodes.extend(found)
            aggregator.add_success(len(found))
            for error in missing:
                aggregator.add_error(error, ErrorContext(file_key=request.file_key, node_id=error.node_id))
                stats.failures += 1
                stats.warn(str(error))

        return nodes, aggregator

    # ------------------------------------------------------------------
    # Single group
    # ------------------------------------------------------------------

    async def _fetch_group_bounded(
        self,
        request: FetchRequest,
        semaphore: asyncio.Semaphore,
        stats: FetchStats,
        *,
        strict: bool,
    ) -> tuple[list[FetchedNode], list[NotFoundError]]:
        async with semaphore:
            return await self._fetch_group(request, stats, strict=strict)

    async def _fetch_group(
        self,
        request: FetchRequest,
        stats: FetchStats,
        *,
        strict: bool,
    ) -> tuple[list[FetchedNode], list[NotFoundError]]:
        """Fetch one file group.

        With *strict*, a node missing from the response raises NotFoundError;
        otherwise missing nodes are returned as errors beside the found ones.
        """
        _log.debug("fetching_file_group", file_key=request.file_key, nodes=len(request.node_ids))
        response = await self._request_with_retry(request, stats)
        self._raise_for_status(response, request)
        documents = self._parse_nodes(response, request)

        found: list[FetchedNode] = []
        missing: list[NotFoundError] = []
        for node_id in request.node_ids:
            entry = documents.get(node_id)
            document = entry.get("document") if isinstance(entry, dict) else None
            if not isinstance(document, dict):
                error = NotFoundError(
                    f"Node {node_id} not found in file {request.file_key}",
                    file_key=request.file_key,
                    node_id=node_id,
                )
                if strict:
                    raise error
                missing.append(error)
                continue
            found.append(
                FetchedNode(
                    node_id=node_id,
                    file_key=request.file_key,
                    node=document,
                    source_files=request.source_files.get(node_id, ()),
                )
            )
        return found, missing

    async def _request_with_retry(self, request: FetchRequest, stats: FetchStats) -> httpx.Response:
        """Issue the nodes request, retrying 429 responses."""
        url = f"/v1/files/{request.file_key}/nodes"
        params = {"ids": ",".join(request.node_ids)}
        attempt = 0

        while True:
            stats.requests += 1
            try:
                response = await self._http.get(url, params=params)
            except httpx.HTTPError as exc:
                raise NetworkError(f"Network error fetching file {request.file_key}: {exc}") from exc

            if response.status_code != 429:
                return response

            hints = parse_rate_limit_headers(response.headers)
            if hints.retry_after_seconds is not None:
                delay = float(hints.retry_after_seconds)
                delay_source = "retry_after"
            else:
                delay = self._initial_backoff * (2**attempt)
                delay_source = "backoff"

            if delay > self._max_retry_delay:
                raise self._ceiling_error(request, delay, hints)

            if attempt >= self._max_retries:
                raise NetworkError(
                    f"Figma API rate limit exceeded for file {request.file_key}: "
                    f"max retries ({self._max_retries}) reached",
                    status_code=429,
                )

            stats.record_retry(delay)
            _log.warning(
                "rate_limited_retrying",
                file_key=request.file_key,
                delay_seconds=delay,
                delay_source=delay_source,
                attempt=attempt + 1,
                max_retries=self._max_retries,
                plan_tier=hints.plan_tier,
                rate_limit_type=hints.rate_limit_type,
            )
            await self._sleep(delay)
            attempt += 1

    def _ceiling_error(self, request: FetchRequest, delay: float, hints: RateLimitHints) -> RateLimitError:
        message = (
            f"Rate limit retry delay of {delay:g}s exceeds maximum of "
            f"{self._max_retry_delay:g}s for file {request.file_key}."
        )
        if hints.upgrade_link:
            message += f" To raise the limit, upgrade your plan: {hints.upgrade_link}"
        _log.error(
            "rate_limit_ceiling_exceeded",
            file_key=request.file_key,
            delay_seconds=delay,
            max_delay_seconds=self._max_retry_delay,
            plan_tier=hints.plan_tier,
            rate_limit_type=hints.rate_limit_type,
        )
        return RateLimitError(
            message,
            retry_after_seconds=delay,
            plan_tier=hints.plan_tier,
            rate_limit_type=hints.rate_limit_type,
            upgrade_link=hints.upgrade_link,
            file_key=request.file_key,
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response, request: FetchRequest) -> None:
        """Map a non-success status to exactly one typed error."""
        if response.is_success:
            return
        details = parse_error_response(response)
        status = details.status_code
        file_key = request.file_key

        if status == 400:
            raise ValidationError(f"Invalid request for file {file_key}: {details.message}", status_code=status)
        if status == 401:
            raise AuthenticationError(
                f"Authentication failed: {details.message}. Check the Figma token is valid and not expired.",
                file_key=file_key,
                status_code=status,
            )
        if status == 403:
            raise AuthenticationError(
                f"Access denied (403) to file {file_key}: {details.message}",
                file_key=file_key,
                status_code=status,
            )
        if status == 404:
            raise NotFoundError(f"Figma file not found: {file_key}", file_key=file_key, status_code=status)
        if status >= 500:
            raise ServerError(
                f"Figma server error ({status}) for file {file_key}: {details.message}",
                status_code=status,
            )
        raise ValidationError(
            f"Unexpected response ({status}) for file {file_key}: {details.message}",
            status_code=status,
        )

    @staticmethod
    def _parse_nodes(response: httpx.Response, request: FetchRequest) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise ValidationError(f"Failed to parse Figma API response for file {request.file_key}") from exc
        documents = payload.get("nodes") if isinstance(payload, dict) else None
        if not isinstance(documents, dict):
            raise ValidationError(f"Figma API response for file {request.file_key} has no 'nodes' object")
        return documents
