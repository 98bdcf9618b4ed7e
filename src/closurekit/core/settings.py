"""Library-wide settings for closurekit.

Every knob has a default that reproduces the plain wrapper semantics, so
nothing needs configuring. Deployments that want bounded memoization caches
or a different log format set ``CLOSUREKIT_*`` environment variables (or a
``.env`` file) instead of threading options through every call site.

Features:
    - **ClosureKitSettings:** log level/format, memoize bounds, limit mode
    - **env_prefix:** ``CLOSUREKIT_`` (``CLOSUREKIT_MEMOIZE_MAX_SIZE=512``)
    - **get_settings():** process-wide cached instance

Examples:
    >>> from closurekit.core.settings import ClosureKitSettings
    >>> ClosureKitSettings(memoize_max_size=128).memoize_max_size
    128

Tags:
    settings, configuration, pydantic, environment, closurekit
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClosureKitSettings(BaseSettings):
    """Settings shared by every closurekit wrapper.

    Fields
    ──────
    log_level             : structlog level used by ``configure_logging``
    log_format            : ``json`` | ``console`` | ``auto`` (json unless tty)
    memoize_max_size      : default LRU bound for ``memoize`` (None = unbounded)
    memoize_ttl_seconds   : default entry lifetime for ``memoize`` (None = forever)
    limit_raise_on_limit  : default ``raise_on_limit`` for ``limit_calls``
    """

    model_config = SettingsConfigDict(
        env_prefix="CLOSUREKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console", "auto"] = "auto"

    # ── Memoization ──────────────────────────────────────────────
    memoize_max_size: int | None = Field(
        default=None,
        ge=1,
        description="Maximum cached entries per memoized function",
    )
    memoize_ttl_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Seconds before a memoized entry expires",
    )

    # ── Call limiting ────────────────────────────────────────────
    limit_raise_on_limit: bool = False


@lru_cache(maxsize=1)
def get_settings() -> ClosureKitSettings:
    """Return the process-wide settings, loading them on first use."""
    return ClosureKitSettings()


def reset_settings() -> None:
    """Drop the cached settings so the next ``get_settings()`` re-reads the environment."""
    get_settings.cache_clear()


__all__ = ["ClosureKitSettings", "get_settings", "reset_settings"]
