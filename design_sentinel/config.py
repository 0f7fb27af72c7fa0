"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from design_sentinel.errors import AuthenticationError
from design_sentinel.models.config import (
    FetchPolicy,
    FigmaConfig,
    LogConfig,
    NormalizerConfig,
    RunConfig,
    SentinelConfig,
    StoreConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"SENTINEL_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    return val


def _env_bool(key: str, default: bool) -> bool:
    return _env(key, str(default)).strip().lower() in ("1", "true", "yes")


def _env_list(key: str) -> list[str] | None:
    raw = _env(key, "")
    if not raw.strip():
        return None
    return [item.strip() for item in raw.split(",") if item.strip()]


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_fetch_policy(value: str) -> FetchPolicy:
    try:
        return FetchPolicy(value.lower())
    except ValueError:
        valid = {policy.value for policy in FetchPolicy}
        raise ValueError(f"Invalid fetch policy: {value}. Must be one of {valid}") from None


def load_config() -> SentinelConfig:
    """Load configuration from SENTINEL_* environment variables."""
    return SentinelConfig(
        figma=FigmaConfig(
            api_base=_env("FIGMA_API_BASE", "https://api.figma.com").rstrip("/"),
            token_env=_env("FIGMA_TOKEN_ENV", "FIGMA_TOKEN"),
            timeout_seconds=_env_float("FIGMA_TIMEOUT", 30.0, min_val=1.0),
            max_concurrency=_env_int("FIGMA_MAX_CONCURRENCY", 5, min_val=1, max_val=20),
            max_retries=_env_int("FIGMA_MAX_RETRIES", 3, min_val=0, max_val=10),
            initial_backoff_seconds=_env_float("FIGMA_INITIAL_BACKOFF", 1.0, min_val=0.0),
            max_retry_delay_seconds=_env_float("FIGMA_MAX_RETRY_DELAY", 3600.0, min_val=0.0),
            fetch_policy=_validate_fetch_policy(_env("FETCH_POLICY", "fail_fast")),
        ),
        normalizer=NormalizerConfig(
            include_properties=_env_list("INCLUDE_PROPERTIES"),
            exclude_properties=_env_list("EXCLUDE_PROPERTIES") or [],
        ),
        store=StoreConfig(
            specs_dir=_env("SPECS_DIR", ".design-specs"),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
        run=RunConfig(
            directives_file=_env("DIRECTIVES_FILE", "design-directives.json"),
            dry_run=_env_bool("DRY_RUN", False),
        ),
    )


def resolve_token(config: FigmaConfig) -> str:
    """Return the API token from the environment variable named by *config*.

    Raises:
        AuthenticationError: the variable is unset or empty.
    """
    token = os.environ.get(config.token_env, "").strip()
    if not token:
        raise AuthenticationError(
            f"{config.token_env} environment variable is required. "
            "Set it to a Figma personal access token."
        )
    return token
