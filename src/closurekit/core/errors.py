"""
Structured error types for closurekit.

Every failure raised by the library itself is a ``ClosureKitError``. Errors
raised by wrapped user functions or awaited operations are never wrapped:
they propagate unchanged so callers can keep handling their own exception
types.

Manifesto:
    - **Typed hierarchy:** One class per failure kind (serialization,
      limit, timeout, configuration)
    - **Builtin compatibility:** ``TimeoutExpired`` is a ``TimeoutError`` and
      ``ConfigError`` is a ``ValueError`` so generic handlers still match
    - **Rich context:** Errors carry a category and a metadata dict for
      structured logging

Architecture:
    ::

        ClosureKitError (category, context, cause)
        ├── SerializationError   (SERIALIZATION)  memoize key failure
        ├── LimitReachedError    (LIMIT)          limit_calls exhausted
        ├── TimeoutExpired       (TIMEOUT)        promise_timeout expiry
        └── ConfigError          (CONFIG)         invalid arguments

        AllFailedError (ExceptionGroup)           any_success exhausted

Examples:
    >>> error = SerializationError("cannot key argument").with_context(position=0)
    >>> error.to_dict()["category"]
    'SERIALIZATION'

Tags:
    error-handling, exception-hierarchy, closurekit
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and log routing."""

    SERIALIZATION = "SERIALIZATION"
    LIMIT = "LIMIT"
    TIMEOUT = "TIMEOUT"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"

    def __str__(self) -> str:
        return self.value


class ClosureKitError(Exception):
    """
    Base class for all closurekit errors.

    Attributes:
        message: Human readable description
        category: ErrorCategory for routing
        context: Free-form metadata (function name, argument position, ...)
        cause: Underlying exception, also chained as ``__cause__``
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ClosureKitError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SerializationError("unsupported argument").with_context(position=2)
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class SerializationError(ClosureKitError):
    """Arguments could not be turned into a deterministic cache key."""

    default_category = ErrorCategory.SERIALIZATION


class LimitReachedError(ClosureKitError):
    """A call-limited wrapper was invoked after its budget was spent."""

    default_category = ErrorCategory.LIMIT

    def __init__(self, function: str, maximum: int, message: str | None = None):
        super().__init__(
            message or f"Call limit of {maximum} reached for '{function}'",
            context={"function": function, "maximum": maximum},
        )
        self.function = function
        self.maximum = maximum


class TimeoutExpired(ClosureKitError, TimeoutError):
    """Raised when an awaited operation does not settle before its deadline.

    Inherits from built-in TimeoutError for broad exception handling.

    Attributes:
        timeout: The timeout value that was exceeded
        elapsed: How long the caller waited
        operation: Name/description of the operation
    """

    default_category = ErrorCategory.TIMEOUT

    def __init__(
        self,
        timeout: float,
        elapsed: float | None = None,
        operation: str = "operation",
    ):
        msg = f"Operation '{operation}' timed out after {timeout}s"
        if elapsed is not None:
            msg += f" (waited {elapsed:.2f}s)"

        super().__init__(
            msg,
            context={"timeout": timeout, "elapsed": elapsed, "operation": operation},
        )
        self.timeout = timeout
        self.elapsed = elapsed
        self.operation = operation


class ConfigError(ClosureKitError, ValueError):
    """Invalid wrapper configuration or argument (a caller error)."""

    default_category = ErrorCategory.CONFIG

    def __init__(self, key: str, value: Any, message: str | None = None):
        super().__init__(
            message or f"Invalid value for '{key}': {value!r}",
            context={"key": key, "value": repr(value)},
        )
        self.key = key
        self.value = value


class AllFailedError(ExceptionGroup):
    """Every awaitable passed to ``any_success`` failed.

    ``exceptions`` holds the individual errors in input order.
    """

    def derive(self, excs):
        return AllFailedError(self.message, excs)


def categorize_error(error: BaseException) -> ErrorCategory:
    """Return the category of a closurekit error, INTERNAL for anything else."""
    if isinstance(error, ClosureKitError):
        return error.category
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ClosureKitError",
    "SerializationError",
    "LimitReachedError",
    "TimeoutExpired",
    "ConfigError",
    "AllFailedError",
    "categorize_error",
]
