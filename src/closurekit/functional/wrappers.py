"""Higher-order function wrappers: memoize, once, limit_calls, compose, pipe.

Each wrapper owns its private state (cache, call counter) and guards it with
a per-instance lock, so one wrapper can be shared between threads. Nothing
is shared between two wrapper instances.

Receiver binding is explicit. Instead of relying on whatever object a wrapper
happens to be looked up on, pass ``context=`` and the wrapped function is
called as ``fn(context, *args, **kwargs)``::

    counter = Counter()
    bump = once(Counter.increment, context=counter)
    bump()  # Counter.increment(counter)

Example:
    >>> from closurekit.functional.wrappers import compose, memoize
    >>> inc = lambda x: x + 1
    >>> sq = lambda x: x * x
    >>> dbl = lambda x: x * 2
    >>> compose(inc, sq, dbl)(10)
    401
    >>> @memoize
    ... def add(a, b):
    ...     return a + b
    >>> add(2, 3)
    5
"""

from __future__ import annotations

import functools
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from closurekit.core.cache import CacheBackend, InMemoryCache
from closurekit.core.errors import ConfigError, LimitReachedError
from closurekit.core.hashing import make_key
from closurekit.core.logging import get_logger
from closurekit.core.settings import get_settings

logger = get_logger(__name__)

T = TypeVar("T")

_MISSING = object()


class Sentinel(Enum):
    """Special return values used instead of raising."""

    LIMIT_REACHED = "LIMIT_REACHED"

    def __repr__(self) -> str:
        return f"<{self.value}>"


LIMIT_REACHED = Sentinel.LIMIT_REACHED


def _function_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)


def _bind(fn: Callable[..., T], context: Any) -> Callable[..., T]:
    if context is None:
        return fn
    return functools.partial(fn, context)


# ------------------------------------------------------------------ #
# memoize
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class CacheInfo:
    """Snapshot of a memoized function's cache statistics."""

    hits: int
    misses: int
    size: int
    max_size: int | None


def memoize(
    fn: Callable[..., T] | None = None,
    *,
    max_size: int | None = None,
    ttl_seconds: float | None = None,
    cache: CacheBackend | None = None,
    context: Any = None,
) -> Any:
    """Cache results of ``fn`` by a deterministic key of its arguments.

    Usable bare (``@memoize``) or with options (``@memoize(max_size=128)``).

    The key is built by :func:`closurekit.core.hashing.make_key`, which is
    order- and type-sensitive (``f(2)`` and ``f("2")`` are cached
    separately). Arguments without a deterministic representation (cyclic
    containers, functions, arbitrary objects) raise ``SerializationError``
    before ``fn`` is called; nothing is cached for such a call.

    Args:
        fn: Function to wrap
        max_size: LRU bound (default: ``ClosureKitSettings.memoize_max_size``,
            unbounded unless configured)
        ttl_seconds: Entry lifetime (default: ``ClosureKitSettings.memoize_ttl_seconds``)
        cache: Custom store implementing ``CacheBackend`` (overrides both bounds)
        context: Explicit receiver passed as ``fn``'s first argument

    Returns:
        Wrapper with ``cache_info()``, ``cache_clear()`` and ``__wrapped__``

    Raises:
        ConfigError: If ``max_size`` or ``ttl_seconds`` is not positive
        SerializationError: On call, if the arguments cannot be keyed
    """
    if fn is None:
        return functools.partial(
            memoize,
            max_size=max_size,
            ttl_seconds=ttl_seconds,
            cache=cache,
            context=context,
        )

    if cache is None:
        settings = get_settings()
        store: CacheBackend = InMemoryCache(
            max_size=max_size if max_size is not None else settings.memoize_max_size,
            default_ttl_seconds=(
                ttl_seconds if ttl_seconds is not None else settings.memoize_ttl_seconds
            ),
        )
    else:
        store = cache

    target = _bind(fn, context)
    name = _function_name(fn)
    lock = threading.Lock()
    stats = {"hits": 0, "misses": 0}

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        key = make_key(args, kwargs)

        value = store.get(key, _MISSING)
        if value is not _MISSING:
            with lock:
                stats["hits"] += 1
            return value

        result = target(*args, **kwargs)
        store.set(key, result)
        with lock:
            stats["misses"] += 1
        logger.debug("memoize_cache_miss", function=name, size=store.size())
        return result

    def cache_info() -> CacheInfo:
        with lock:
            return CacheInfo(
                hits=stats["hits"],
                misses=stats["misses"],
                size=store.size(),
                max_size=getattr(store, "max_size", None),
            )

    def cache_clear() -> None:
        with lock:
            store.clear()
            stats["hits"] = 0
            stats["misses"] = 0

    wrapper.cache_info = cache_info  # type: ignore[attr-defined]
    wrapper.cache_clear = cache_clear  # type: ignore[attr-defined]
    return wrapper


# ------------------------------------------------------------------ #
# once
# ------------------------------------------------------------------ #


class _Once:
    """Callable that runs its target on the first successful call only."""

    def __init__(self, fn: Callable[..., Any], context: Any = None):
        self._fn = _bind(fn, context)
        self._name = _function_name(fn)
        self._lock = threading.RLock()
        self._called = False
        self._result: Any = None
        functools.update_wrapper(self, fn, updated=())

    @property
    def called(self) -> bool:
        """True once the target has returned successfully."""
        return self._called

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            if not self._called:
                # An exception leaves _called False so the next call retries.
                self._result = self._fn(*args, **kwargs)
                self._called = True
                logger.debug("once_invoked", function=self._name)
            return self._result

    def __repr__(self) -> str:
        return f"once({self._name}, called={self._called})"


def once(fn: Callable[..., T], *, context: Any = None) -> Callable[..., T]:
    """Wrap ``fn`` so it executes at most once.

    The first call's return value is cached and returned by every later call,
    whatever arguments they pass. If the first call raises, the exception
    propagates, nothing is cached and the next call tries again.

    Example:
        >>> import random
        >>> roll = once(random.random)
        >>> roll() == roll() == roll()
        True
    """
    return _Once(fn, context)  # type: ignore[return-value]


# ------------------------------------------------------------------ #
# limit_calls
# ------------------------------------------------------------------ #


class _CallLimiter:
    """Callable that forwards at most ``maximum`` calls to its target."""

    def __init__(
        self,
        fn: Callable[..., Any],
        maximum: int,
        raise_on_limit: bool,
        context: Any = None,
    ):
        self._fn = _bind(fn, context)
        self._name = _function_name(fn)
        self._maximum = maximum
        self._raise_on_limit = raise_on_limit
        self._calls = 0
        self._lock = threading.Lock()
        functools.update_wrapper(self, fn, updated=())

    @property
    def maximum(self) -> int:
        return self._maximum

    @property
    def calls(self) -> int:
        """Number of calls forwarded to the target so far."""
        return self._calls

    @property
    def remaining(self) -> int:
        return self._maximum - self._calls

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            exhausted = self._calls >= self._maximum
            if not exhausted:
                self._calls += 1

        if exhausted:
            logger.info("limit_reached", function=self._name, maximum=self._maximum)
            if self._raise_on_limit:
                raise LimitReachedError(self._name, self._maximum)
            return LIMIT_REACHED

        return self._fn(*args, **kwargs)

    def __repr__(self) -> str:
        return f"limit_calls({self._name}, calls={self._calls}, maximum={self._maximum})"


def limit_calls(
    fn: Callable[..., T],
    maximum: int,
    *,
    raise_on_limit: bool | None = None,
    context: Any = None,
) -> Callable[..., T | Sentinel]:
    """Wrap ``fn`` so only its first ``maximum`` calls execute.

    Every call after the budget is spent skips ``fn`` and returns the
    ``LIMIT_REACHED`` sentinel, or raises ``LimitReachedError`` when
    ``raise_on_limit`` is true. A call that raises still counts.

    Args:
        fn: Function to wrap
        maximum: Non-negative number of calls allowed (0 = never call ``fn``)
        raise_on_limit: Raise instead of returning the sentinel
            (default: ``ClosureKitSettings.limit_raise_on_limit``)
        context: Explicit receiver passed as ``fn``'s first argument

    Raises:
        ConfigError: If ``maximum`` is not a non-negative int

    Example:
        >>> log = limit_calls(print, 1)
        >>> log("hello")
        hello
        >>> log("again")
        <LIMIT_REACHED>
    """
    if isinstance(maximum, bool) or not isinstance(maximum, int) or maximum < 0:
        raise ConfigError("maximum", maximum, f"maximum must be a non-negative int, got {maximum!r}")

    if raise_on_limit is None:
        raise_on_limit = get_settings().limit_raise_on_limit

    return _CallLimiter(fn, maximum, raise_on_limit, context)  # type: ignore[return-value]


# ------------------------------------------------------------------ #
# compose / pipe
# ------------------------------------------------------------------ #


def _identity(value: T) -> T:
    return value


def compose(*fns: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Compose unary callables from right to left.

    ``compose(f, g, h)(x) == f(g(h(x)))``; ``compose()`` is the identity.
    """
    if not fns:
        return _identity

    def composed(value: Any) -> Any:
        for fn in reversed(fns):
            value = fn(value)
        return value

    return composed


def pipe(*fns: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Compose unary callables from left to right: ``pipe(f, g)(x) == g(f(x))``."""
    return compose(*reversed(fns))


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
