"""Synchronous higher-order wrappers."""

from closurekit.functional.wrappers import (
    LIMIT_REACHED,
    CacheInfo,
    Sentinel,
    compose,
    limit_calls,
    memoize,
    once,
    pipe,
)

__all__ = [
    "CacheInfo",
    "LIMIT_REACHED",
    "Sentinel",
    "compose",
    "limit_calls",
    "memoize",
    "once",
    "pipe",
]
