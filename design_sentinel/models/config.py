"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class FetchPolicy(StrEnum):
    """How a multi-file fetch reacts to a failing file group."""

    FAIL_FAST = "fail_fast"
    AGGREGATE = "aggregate"


@dataclass
class FigmaConfig:
    """Figma REST API client configuration."""

    api_base: str = "https://api.figma.com"
    token_env: str = "FIGMA_TOKEN"
    timeout_seconds: float = 30.0
    max_concurrency: int = 5
    max_retries: int = 3
    initial_backoff_seconds: float = 1.0
    max_retry_delay_seconds: float = 3600.0
    fetch_policy: FetchPolicy = FetchPolicy.FAIL_FAST


@dataclass
class NormalizerConfig:
    """Property allow/deny lists applied when normalizing nodes."""

    include_properties: list[str] | None = None
    exclude_properties: list[str] = field(default_factory=list)


@dataclass
class StoreConfig:
    """Spec store configuration."""

    specs_dir: str = ".design-specs"


@dataclass
class RunConfig:
    """Options for one command-line run."""

    directives_file: str = "design-directives.json"
    dry_run: bool = False


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class SentinelConfig:
    """Top-level Design Sentinel configuration."""

    figma: FigmaConfig = field(default_factory=FigmaConfig)
    normalizer: NormalizerConfig = field(default_factory=NormalizerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    log: LogConfig = field(default_factory=LogConfig)
    run: RunConfig = field(default_factory=RunConfig)
