"""closurekit.core: errors, logging, settings, caching and key hashing.

These modules carry no wrapper logic of their own; the functional and
execution packages build on them.
"""

from closurekit.core.cache import CacheBackend, InMemoryCache
from closurekit.core.errors import (
    AllFailedError,
    ClosureKitError,
    ConfigError,
    ErrorCategory,
    LimitReachedError,
    SerializationError,
    TimeoutExpired,
    categorize_error,
)
from closurekit.core.hashing import compute_hash, make_key, serialize_arguments
from closurekit.core.logging import configure_logging, get_logger
from closurekit.core.settings import ClosureKitSettings, get_settings, reset_settings

__all__ = [
    # cache
    "CacheBackend",
    "InMemoryCache",
    # errors
    "AllFailedError",
    "ClosureKitError",
    "ConfigError",
    "ErrorCategory",
    "LimitReachedError",
    "SerializationError",
    "TimeoutExpired",
    "categorize_error",
    # hashing
    "compute_hash",
    "make_key",
    "serialize_arguments",
    # logging
    "configure_logging",
    "get_logger",
    # settings
    "ClosureKitSettings",
    "get_settings",
    "reset_settings",
]
