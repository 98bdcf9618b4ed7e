"""
In-memory key/value store backing ``memoize``.

Provides a ``CacheBackend`` protocol and an ``InMemoryCache`` implementation
with optional LRU bound and optional TTL expiry. Both limits default to off,
which gives the classic unbounded memoization cache.

Architecture:
    ::

        CacheBackend (Protocol)
        └── InMemoryCache: single-process, optional LRU bound + TTL

        API: get(key, default=None) → value | default
             set(key, value, ttl_seconds=None)
             delete(key)
             exists(key) → bool
             clear()
             size() → int

Examples:
    >>> from closurekit.core.cache import InMemoryCache
    >>> cache = InMemoryCache(max_size=2)
    >>> cache.set("a", 1); cache.set("b", 2); cache.set("c", 3)
    >>> cache.exists("a")
    False

Performance:
    - O(1) get/set/delete (OrderedDict move_to_end / popitem)
    - TTL cleanup is lazy (checked on access)

Tags:
    cache, lru, ttl, in-memory, closurekit
"""

from __future__ import annotations

import math
import threading
import time
from collections import OrderedDict
from typing import Any, Protocol

from closurekit.core.errors import ConfigError


class CacheBackend(Protocol):
    """Protocol for memoization stores.

    Keys are strings produced by ``closurekit.core.hashing.make_key``.
    Values are arbitrary Python objects.
    """

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or ``default`` when missing or expired."""
        ...

    def set(self, key: str, value: Any, *, ttl_seconds: float | None = None) -> None:
        """Store a value; ``ttl_seconds=None`` uses the backend default."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key. No-op if it does not exist."""
        ...

    def exists(self, key: str) -> bool:
        """``True`` if the key is present and not expired."""
        ...

    def clear(self) -> None:
        """Remove all keys."""
        ...

    def size(self) -> int:
        """Number of stored keys (expired keys may still be counted)."""
        ...


def _check_ttl(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value) or value <= 0:
        raise ConfigError(name, value, f"{name} must be a positive number of seconds, got {value!r}")


class InMemoryCache:
    """In-memory cache with optional LRU bound and TTL.

    Thread-safe for single-process use.

    Attributes:
        max_size: Maximum number of keys before LRU eviction (``None`` → unbounded).
        default_ttl_seconds: Default TTL for keys (``None`` → no expiry).

    Example:
        cache = InMemoryCache(max_size=500, default_ttl_seconds=30)
        cache.set("k", {"user_id": 42})
        cache.get("k")
    """

    def __init__(
        self,
        *,
        max_size: int | None = None,
        default_ttl_seconds: float | None = None,
    ):
        if max_size is not None and (
            isinstance(max_size, bool) or not isinstance(max_size, int) or max_size < 1
        ):
            raise ConfigError("max_size", max_size, f"max_size must be a positive int, got {max_size!r}")
        if default_ttl_seconds is not None:
            _check_ttl("default_ttl_seconds", default_ttl_seconds)

        self._store: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds
        self._lock = threading.RLock()

    @property
    def max_size(self) -> int | None:
        return self._max_size

    @property
    def default_ttl_seconds(self) -> float | None:
        return self._default_ttl

    def get(self, key: str, default: Any = None) -> Any:
        """Retrieve a value by key."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return default

            value, expires_at = entry
            if expires_at is not None and time.monotonic() >= expires_at:
                del self._store[key]
                return default

            self._store.move_to_end(key)
            return value

    def set(self, key: str, value: Any, *, ttl_seconds: float | None = None) -> None:
        """Store a value with optional TTL."""
        if ttl_seconds is not None:
            _check_ttl("ttl_seconds", ttl_seconds)
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = (time.monotonic() + ttl) if ttl else None

        with self._lock:
            if key in self._store:
                self._store.move_to_end(key)
            elif self._max_size is not None and len(self._store) >= self._max_size:
                self._store.popitem(last=False)

            self._store[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        """Remove a key from the cache."""
        with self._lock:
            self._store.pop(key, None)

    def exists(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return False

            _, expires_at = entry
            if expires_at is not None and time.monotonic() >= expires_at:
                del self._store[key]
                return False

            return True

    def clear(self) -> None:
        """Remove all keys."""
        with self._lock:
            self._store.clear()

    def size(self) -> int:
        """Return current number of cached keys."""
        with self._lock:
            return len(self._store)


__all__ = [
    "CacheBackend",
    "InMemoryCache",
]
