"""Retry strategies and retry helpers for flaky operations.

``retry_async_operation`` re-invokes a failing asynchronous operation after a
fixed delay, up to a retry budget. The building blocks (strategies and
``RetryContext``) are public so callers can plug in exponential backoff or
retry synchronous code the same way.

Example:
    >>> from closurekit.execution.retry import retry_async_operation
    >>>
    >>> async def fetch():
    ...     return await client.get("/status")
    >>>
    >>> result = await retry_async_operation(fetch, retry_count=3, delay=1.0)
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import math
import random
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from closurekit.core.errors import ConfigError
from closurekit.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Delay in seconds before the retry following failed ``attempt``.

        Args:
            attempt: Zero-based retry number (0 = first retry)
        """
        ...

    @abstractmethod
    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        """Whether another attempt is allowed after ``attempt`` failures.

        Args:
            attempt: Number of failed attempts so far
            error: The exception that caused the latest failure
        """
        ...


@dataclass
class ConstantBackoff(RetryStrategy):
    """Fixed delay between a fixed number of retries."""

    max_retries: int = 3
    delay: float = 1.0

    def __post_init__(self) -> None:
        _check_retry_count("max_retries", self.max_retries)
        _check_delay("delay", self.delay)

    def next_delay(self, attempt: int) -> float:
        return self.delay

    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        return attempt <= self.max_retries


@dataclass
class ExponentialBackoff(RetryStrategy):
    """Exponential backoff with optional jitter.

    Delay = min(base_delay * (multiplier ** attempt), max_delay) ± jitter

    Attributes:
        max_retries: Maximum number of retries after the first attempt
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap in seconds
        multiplier: Exponential multiplier
        jitter: Add randomness to avoid synchronized retries
        jitter_range: Range of jitter as fraction of delay (0.0-1.0)
        retryable_errors: Exception types that may be retried (None = all)
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    jitter: bool = True
    jitter_range: float = 0.25
    retryable_errors: tuple[type[BaseException], ...] | None = None

    def __post_init__(self) -> None:
        _check_retry_count("max_retries", self.max_retries)
        _check_delay("base_delay", self.base_delay)
        _check_delay("max_delay", self.max_delay)

    def next_delay(self, attempt: int) -> float:
        delay = min(self.base_delay * (self.multiplier**attempt), self.max_delay)

        if self.jitter:
            spread = delay * self.jitter_range
            delay = max(0.0, delay + random.uniform(-spread, spread))

        return delay

    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        if attempt > self.max_retries:
            return False
        if error is not None and self.retryable_errors is not None:
            return isinstance(error, self.retryable_errors)
        return True


def _check_retry_count(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(name, value, f"{name} must be a non-negative int, got {value!r}")


def _check_delay(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value) or value < 0:
        raise ConfigError(name, value, f"{name} must be a non-negative number of seconds, got {value!r}")


@dataclass
class RetryContext:
    """State of one retry chain.

    ``attempt`` counts attempts made so far; ``errors`` keeps every failure
    with the monotonic time it was observed. A context is meant for a single
    ``run``/``run_async`` call.

    Example:
        >>> ctx = RetryContext(ConstantBackoff(max_retries=2, delay=0.1))
        >>> result = ctx.run(call_api)
    """

    strategy: RetryStrategy
    on_retry: Callable[[int, BaseException, float], None] | None = None
    operation: str = "operation"
    attempt: int = field(default=0, init=False)
    last_error: BaseException | None = field(default=None, init=False)
    errors: list[tuple[int, BaseException, float]] = field(default_factory=list, init=False)

    @property
    def attempts(self) -> int:
        return self.attempt

    def _record_failure(self, error: Exception) -> float | None:
        """Record a failure; return the delay before retrying, or None to give up."""
        self.last_error = error
        self.errors.append((self.attempt, error, time.monotonic()))

        if not self.strategy.should_retry(self.attempt, error):
            logger.warning(
                "retries_exhausted",
                operation=self.operation,
                attempts=self.attempt,
                error=repr(error),
            )
            return None

        delay = self.strategy.next_delay(self.attempt - 1)
        logger.warning(
            "retry_scheduled",
            operation=self.operation,
            attempt=self.attempt,
            delay=delay,
            error=repr(error),
        )
        if self.on_retry:
            self.on_retry(self.attempt, error, delay)
        return delay

    def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call ``func`` until it succeeds or the strategy gives up.

        Raises:
            The last exception if all retries are exhausted
        """
        while True:
            self.attempt += 1
            try:
                return func(*args, **kwargs)
            except Exception as e:
                delay = self._record_failure(e)
                if delay is None:
                    raise
            time.sleep(delay)

    async def run_async(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Await ``func(*args, **kwargs)`` until it succeeds or the strategy gives up.

        ``func`` is called afresh for every attempt.

        Raises:
            The last exception if all retries are exhausted
        """
        while True:
            self.attempt += 1
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                delay = self._record_failure(e)
                if delay is None:
                    raise
            await asyncio.sleep(delay)


async def retry_async_operation(
    operation: Callable[[], Awaitable[T]],
    retry_count: int,
    delay: float,
) -> T:
    """Run an asynchronous operation, retrying failures after a fixed delay.

    Args:
        operation: Zero-argument callable returning a *fresh* awaitable on
            every call (an already-created coroutine cannot be re-run)
        retry_count: Retries after the first attempt (total attempts =
            ``retry_count + 1``)
        delay: Seconds to wait between attempts

    Returns:
        The first successful result

    Raises:
        ConfigError: If ``operation`` is not callable or the counts are invalid
        Exception: The last attempt's exception once retries are exhausted;
            earlier failures are only logged
    """
    if inspect.isawaitable(operation) or not callable(operation):
        raise ConfigError(
            "operation",
            operation,
            "operation must be a zero-argument callable that returns a new awaitable",
        )

    ctx = RetryContext(
        strategy=ConstantBackoff(max_retries=retry_count, delay=delay),
        operation=getattr(operation, "__qualname__", type(operation).__name__),
    )
    return await ctx.run_async(operation)


def with_retry(
    strategy: RetryStrategy | None = None,
    on_retry: Callable[[int, BaseException, float], None] | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator factory adding retry logic to a sync or async function.

    Args:
        strategy: Retry strategy (default: ExponentialBackoff())
        on_retry: Callback called before each retry (attempt, error, delay)

    Example:
        >>> @with_retry(ConstantBackoff(max_retries=2, delay=0.5))
        ... async def flaky_operation():
        ...     return await call_api()
    """
    if strategy is None:
        strategy = ExponentialBackoff()

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = getattr(func, "__qualname__", repr(func))

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                ctx = RetryContext(strategy=strategy, on_retry=on_retry, operation=name)
                return await ctx.run_async(func, *args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            ctx = RetryContext(strategy=strategy, on_retry=on_retry, operation=name)
            return ctx.run(func, *args, **kwargs)

        return sync_wrapper

    return decorator


__all__ = [
    "ConstantBackoff",
    "ExponentialBackoff",
    "RetryContext",
    "RetryStrategy",
    "retry_async_operation",
    "with_retry",
]
