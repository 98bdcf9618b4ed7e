"""
Deterministic argument keys for memoization.

``make_key(args, kwargs)`` turns a call's arguments into a stable string so
that equal calls share a cache entry and different calls never collide.

Manifesto:
    A memoization key must be:
    - **Deterministic:** The same arguments always give the same key, in
      any process (no ``id()``, no ``hash()`` randomisation)
    - **Order-sensitive:** ``f(1, 2)`` and ``f(2, 1)`` are different calls
    - **Type-sensitive:** ``2``, ``2.0``, ``"2"`` and ``True`` are different
      arguments even though some of them compare equal in Python
    - **Honest:** Anything without a deterministic representation raises
      ``SerializationError`` instead of being keyed by accident

Architecture:
    ::

        make_key((2, "a"), {"flag": True})
            │
            ▼
        _encode() → tagged JSON tree
            [["int","2"], ["str","a"]], [["flag", ["bool", true]]]
            │
            ▼
        json.dumps(compact) → sha256 → 32 hex chars

Supported values:
    None, bool, int, float, complex, str, bytes, bytearray, Decimal,
    datetime/date/time/timedelta, UUID, Enum members, list, tuple, dict,
    set, frozenset and dataclass instances (recursively). Subclasses of
    these (namedtuple, OrderedDict, defaultdict, str subclasses...) are
    accepted and keyed under their own type name.

Rejected values (SerializationError):
    Cyclic containers, functions, classes, modules and any other object.

Tags:
    hashing, memoization, cache-key, closurekit
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
import uuid
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from closurekit.core.errors import SerializationError


def compute_hash(text: str, length: int = 32) -> str:
    """SHA-256 hex digest of ``text`` truncated to ``length`` characters."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:length]


def _qualified_name(tp: type) -> str:
    return f"{tp.__module__}.{tp.__qualname__}"


def _tag(tag: str, base: type, value: Any, *payload: Any) -> list[Any]:
    # A subclass is keyed under its own type name, so P(1, 2) never matches (1, 2)
    if type(value) is base:
        return [tag, *payload]
    return [tag, _qualified_name(type(value)), *payload]


def _encode(value: Any, path: set[int]) -> Any:
    # bool before int, Enum before int/str (IntEnum, StrEnum)
    if value is None:
        return ["none"]
    if isinstance(value, bool):
        return ["bool", value]
    if isinstance(value, Enum):
        return ["enum", _qualified_name(type(value)), value.name]
    if isinstance(value, int):
        return _tag("int", int, value, int.__repr__(value))
    if isinstance(value, float):
        return _tag("float", float, value, float.__repr__(value))
    if isinstance(value, complex):
        return _tag("complex", complex, value, complex.__repr__(value))
    if isinstance(value, str):
        return _tag("str", str, value, str.__str__(value))
    if isinstance(value, bytes):
        return _tag("bytes", bytes, value, value.hex())
    if isinstance(value, bytearray):
        return _tag("bytearray", bytearray, value, value.hex())
    if isinstance(value, Decimal):
        return _tag("decimal", Decimal, value, Decimal.__str__(value))
    if isinstance(value, datetime):
        return _tag("datetime", datetime, value, datetime.isoformat(value))
    if isinstance(value, date):
        return _tag("date", date, value, date.isoformat(value))
    if isinstance(value, time):
        return _tag("time", time, value, time.isoformat(value))
    if isinstance(value, timedelta):
        return _tag("timedelta", timedelta, value, value.days, value.seconds, value.microseconds)
    if isinstance(value, uuid.UUID):
        return _tag("uuid", uuid.UUID, value, uuid.UUID.__str__(value))

    is_container = isinstance(value, (list, tuple, Mapping, set, frozenset)) or (
        dataclasses.is_dataclass(value) and not isinstance(value, type)
    )
    if not is_container:
        raise SerializationError(
            f"Cannot build a deterministic key for value of type {type(value).__name__!r}"
        ).with_context(type=_qualified_name(type(value)))

    marker = id(value)
    if marker in path:
        raise SerializationError(
            f"Cyclic {type(value).__name__} cannot be used as a memoization key"
        ).with_context(type=_qualified_name(type(value)))

    path.add(marker)
    try:
        if isinstance(value, list):
            return _tag("list", list, value, [_encode(item, path) for item in value])
        if isinstance(value, tuple):
            return _tag("tuple", tuple, value, [_encode(item, path) for item in value])
        if isinstance(value, Mapping):
            items = [[_encode(k, path), _encode(v, path)] for k, v in value.items()]
            items.sort(key=lambda pair: _dumps(pair[0]))
            return _tag("dict", dict, value, items)
        if isinstance(value, (set, frozenset)):
            base = frozenset if isinstance(value, frozenset) else set
            members = sorted((_encode(item, path) for item in value), key=_dumps)
            return _tag(base.__name__, base, value, members)

        fields = [
            [f.name, _encode(getattr(value, f.name), path)]
            for f in dataclasses.fields(value)
        ]
        return ["dataclass", _qualified_name(type(value)), fields]
    finally:
        path.discard(marker)


def _dumps(tree: Any) -> str:
    return json.dumps(tree, separators=(",", ":"))


def serialize_arguments(args: tuple[Any, ...], kwargs: Mapping[str, Any] | None = None) -> str:
    """
    Serialize a call's arguments into a canonical JSON string.

    Keyword argument order does not matter; positional order does.

    Raises:
        SerializationError: If any argument has no deterministic representation
    """
    path: set[int] = set()
    try:
        positional = [_encode(arg, path) for arg in args]
        keywords = sorted([name, _encode(arg, path)] for name, arg in (kwargs or {}).items())
    except RecursionError as e:
        raise SerializationError("Arguments are nested too deeply to serialize", cause=e) from e
    return _dumps([positional, keywords])


def make_key(args: tuple[Any, ...], kwargs: Mapping[str, Any] | None = None, length: int = 32) -> str:
    """
    Build a memoization key for a call.

    Example:
        >>> make_key((2, 3)) == make_key((2, 3))
        True
        >>> make_key((2,)) == make_key(("2",))
        False
    """
    return compute_hash(serialize_arguments(args, kwargs), length=length)


__all__ = ["compute_hash", "serialize_arguments", "make_key"]
