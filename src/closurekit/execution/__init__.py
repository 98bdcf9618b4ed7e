"""closurekit.execution: asynchronous resilience helpers.

MODULE MAP
──────────
  timeout.py       promise_timeout: race an awaitable against a timer
  retry.py         retry_async_operation, RetryContext, backoff strategies
  combinators.py   gather_all, race, any_success, all_settled, delay
"""

from closurekit.execution.combinators import (
    Settled,
    all_settled,
    any_success,
    delay,
    gather_all,
    race,
)
from closurekit.execution.retry import (
    ConstantBackoff,
    ExponentialBackoff,
    RetryContext,
    RetryStrategy,
    retry_async_operation,
    with_retry,
)
from closurekit.execution.timeout import TimeoutExpired, promise_timeout

__all__ = [
    # combinators
    "Settled",
    "all_settled",
    "any_success",
    "delay",
    "gather_all",
    "race",
    # retry
    "ConstantBackoff",
    "ExponentialBackoff",
    "RetryContext",
    "RetryStrategy",
    "retry_async_operation",
    "with_retry",
    # timeout
    "TimeoutExpired",
    "promise_timeout",
]
