"""Combinators over groups of awaitables.

Four ways of waiting on several awaitables at once, plus ``delay``:

=================  ==========================================================
``gather_all``     every result, in input order; first failure propagates
``race``           outcome (value or error) of whichever settles first
``any_success``    first successful value; ``AllFailedError`` if none succeed
``all_settled``    a ``Settled`` record per input; never raises for inputs
=================  ==========================================================

Inputs may be coroutines, tasks or futures; coroutines are scheduled as tasks
on the running loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Literal, TypeVar

from closurekit.core.errors import AllFailedError, ClosureKitError, ConfigError
from closurekit.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Settled:
    """Outcome of one awaitable passed to ``all_settled``."""

    status: Literal["fulfilled", "rejected"]
    value: Any = None
    reason: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status == "fulfilled"


async def delay(seconds: float, value: T = None) -> T:
    """Sleep for ``seconds`` then return ``value``."""
    await asyncio.sleep(seconds)
    return value


def _schedule(aws: tuple[Awaitable[Any], ...]) -> list[asyncio.Future]:
    return [asyncio.ensure_future(aw) for aw in aws]


def _cancel(tasks: set[asyncio.Future] | list[asyncio.Future]) -> None:
    for task in tasks:
        if not task.done():
            task.cancel()


async def gather_all(*aws: Awaitable[Any]) -> list[Any]:
    """Wait for every awaitable and return their results in input order.

    The first failure is raised immediately and the awaitables still
    pending are cancelled. No inputs → ``[]``.
    """
    tasks = _schedule(aws)
    if not tasks:
        return []

    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        _cancel(tasks)
        raise

    failures = [
        task.exception()
        for task in tasks
        if task in done and not task.cancelled() and task.exception() is not None
    ]
    if failures:
        _cancel(pending)
        raise failures[0]

    return [task.result() for task in tasks]


async def race(*aws: Awaitable[T], cancel_pending: bool = True) -> T:
    """Return (or raise) the outcome of the first awaitable to settle.

    Args:
        *aws: Awaitables to race
        cancel_pending: Cancel the losers once a winner settles

    Raises:
        ConfigError: If no awaitables are given (nothing could ever settle)
    """
    if not aws:
        raise ConfigError("aws", aws, "race() needs at least one awaitable")

    tasks = _schedule(aws)
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        _cancel(tasks)
        raise

    if cancel_pending:
        _cancel(pending)

    # Several may finish in the same loop iteration; input order breaks the tie.
    winner = next(task for task in tasks if task in done)
    return winner.result()


async def any_success(*aws: Awaitable[T]) -> T:
    """Return the first successful result, ignoring failures until all have failed.

    Remaining awaitables are cancelled once one succeeds.

    Raises:
        AllFailedError: If every awaitable fails (errors in input order)
        ConfigError: If no awaitables are given
    """
    if not aws:
        raise ConfigError("aws", aws, "any_success() needs at least one awaitable")

    tasks = _schedule(aws)
    pending: set[asyncio.Future] = set(tasks)
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in (t for t in tasks if t in done):
                if not task.cancelled() and task.exception() is None:
                    _cancel(pending)
                    return task.result()
    except asyncio.CancelledError:
        _cancel(tasks)
        raise

    errors: list[Exception] = []
    for task in tasks:
        if task.cancelled():
            # ExceptionGroup cannot hold CancelledError (a BaseException)
            errors.append(ClosureKitError("Awaitable was cancelled"))
        else:
            errors.append(task.exception())  # type: ignore[arg-type]

    logger.debug("all_awaitables_failed", count=len(errors))
    raise AllFailedError("All awaitables failed", errors)


async def all_settled(*aws: Awaitable[Any]) -> list[Settled]:
    """Wait for every awaitable and describe each outcome, in input order."""
    tasks = _schedule(aws)
    if not tasks:
        return []

    try:
        await asyncio.wait(tasks)
    except asyncio.CancelledError:
        _cancel(tasks)
        raise

    results: list[Settled] = []
    for task in tasks:
        if task.cancelled():
            results.append(Settled("rejected", reason=asyncio.CancelledError()))
        elif task.exception() is not None:
            results.append(Settled("rejected", reason=task.exception()))
        else:
            results.append(Settled("fulfilled", value=task.result()))
    return results


__all__ = [
    "Settled",
    "all_settled",
    "any_success",
    "delay",
    "gather_all",
    "race",
]
