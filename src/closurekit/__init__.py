"""
closurekit - higher-order function and asyncio utilities.

- closurekit.functional: memoize, once, limit_calls, compose, pipe
- closurekit.execution: promise_timeout, retry_async_operation, combinators
- closurekit.sequences: flat, includes
- closurekit.core: errors, logging, settings
"""

__version__ = "0.1.0"

from closurekit.core.errors import (
    AllFailedError,
    ClosureKitError,
    ConfigError,
    LimitReachedError,
    SerializationError,
    TimeoutExpired,
)
from closurekit.execution import (
    Settled,
    all_settled,
    any_success,
    delay,
    gather_all,
    promise_timeout,
    race,
    retry_async_operation,
    with_retry,
)
from closurekit.functional import LIMIT_REACHED, compose, limit_calls, memoize, once, pipe
from closurekit.sequences import flat, includes

__all__ = [
    "AllFailedError",
    "ClosureKitError",
    "ConfigError",
    "LIMIT_REACHED",
    "LimitReachedError",
    "SerializationError",
    "Settled",
    "TimeoutExpired",
    "all_settled",
    "any_success",
    "compose",
    "delay",
    "flat",
    "gather_all",
    "includes",
    "limit_calls",
    "memoize",
    "once",
    "pipe",
    "promise_timeout",
    "race",
    "retry_async_operation",
    "with_retry",
]
