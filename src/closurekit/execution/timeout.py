"""
Timeout racing for awaitables.

``promise_timeout`` races an awaitable against a timer. Whichever settles
first decides the outcome the caller sees; the other is ignored.

Manifesto:
    Waiting forever on a slow dependency is a reliability anti-pattern, but
    cancelling work the caller does not own is just as surprising. So:

    - **Race, don't cancel:** On timeout the caller gets ``TimeoutExpired``
      while the original operation keeps running to completion
    - **One outcome:** The caller observes exactly one of {result, error,
      timeout}, never two
    - **No dangling timers:** If the operation settles first the timer is
      released immediately
    - **No orphan warnings:** A late failure of an abandoned operation (timed
      out, or its caller was cancelled) is retrieved and logged instead
      of tripping asyncio's "exception was never retrieved" warning

Architecture:
    ::

        promise_timeout(aw, 1.5)
              │
              ├── task = ensure_future(aw)     (runs independently)
              │
              └── asyncio.wait({task}, timeout=1.5)
                        │
              ┌─────────┴──────────┐
              ▼                    ▼
        task done first       timer expired first
        → task.result()       → raise TimeoutExpired
          (value or its         (task left running; done-callback
           own exception)        logs its late outcome)

Examples:
    >>> async def main():
    ...     slow = asyncio.sleep(2.0, result={"name": "John Doe"})
    ...     try:
    ...         await promise_timeout(slow, 1.5)
    ...     except TimeoutExpired as e:
    ...         print(e.timeout)
    >>> asyncio.run(main())
    1.5

Guardrails:
    - Timeouts are in seconds (float)
    - A coroutine passed in is scheduled as a task immediately
    - Use ``asyncio.wait_for`` instead if you *want* cancellation

Tags:
    timeout, race, asyncio, resilience, closurekit
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Awaitable
from typing import Any, TypeVar

from closurekit.core.errors import ConfigError, TimeoutExpired
from closurekit.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _validate_seconds(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(name, value, f"{name} must be a number of seconds, got {value!r}")
    if math.isnan(value) or value < 0:
        raise ConfigError(name, value, f"{name} must be non-negative, got {value!r}")
    return float(value)


def _describe(awaitable: Any) -> str:
    for attr in ("__qualname__", "__name__"):
        name = getattr(awaitable, attr, None)
        if isinstance(name, str):
            return name
    get_name = getattr(awaitable, "get_name", None)
    if callable(get_name):
        return get_name()
    return type(awaitable).__name__


def _log_late_outcome(operation: str, started: float):
    def callback(task: asyncio.Future) -> None:
        elapsed = time.monotonic() - started
        if task.cancelled():
            logger.debug("abandoned_operation_cancelled", operation=operation, elapsed=elapsed)
            return
        error = task.exception()
        if error is not None:
            logger.debug(
                "abandoned_operation_failed",
                operation=operation,
                elapsed=elapsed,
                error=repr(error),
            )
        else:
            logger.debug("abandoned_operation_completed", operation=operation, elapsed=elapsed)

    return callback


async def promise_timeout(
    awaitable: Awaitable[T],
    timeout: float,
    operation: str | None = None,
) -> T:
    """Await ``awaitable`` but give up after ``timeout`` seconds.

    Args:
        awaitable: Coroutine, task or future to race against the timer
        timeout: Seconds to wait (non-negative)
        operation: Name for error messages (defaults to the awaitable's name)

    Returns:
        The awaitable's result if it settles in time

    Raises:
        TimeoutExpired: If the timer fires first (the awaitable is not cancelled)
        ConfigError: If ``timeout`` is negative or not a number
        Exception: Whatever the awaitable itself raises, unchanged
    """
    seconds = _validate_seconds("timeout", timeout)
    op_name = operation or _describe(awaitable)

    task = asyncio.ensure_future(awaitable)
    started = time.monotonic()

    try:
        if seconds == 0:
            # An operation that settles within one loop step beats a zero timer.
            await asyncio.sleep(0)
        await asyncio.wait({task}, timeout=seconds)
    except asyncio.CancelledError:
        # The caller gave up; the operation is abandoned like on a timeout.
        task.add_done_callback(_log_late_outcome(op_name, started))
        raise

    if task.done():
        return task.result()

    elapsed = time.monotonic() - started
    task.add_done_callback(_log_late_outcome(op_name, started))
    logger.info("operation_timed_out", operation=op_name, timeout=seconds, elapsed=elapsed)
    raise TimeoutExpired(timeout=seconds, elapsed=elapsed, operation=op_name)


__all__ = ["TimeoutExpired", "promise_timeout"]
