"""Sequence helpers: depth-limited flattening and strict membership tests.

Free functions over ordinary lists and tuples; built-in types are never
patched.

    >>> flat([1, [2, 3, 5], [3, [3, 5, 3]]])
    [1, 2, 3, 5, 3, [3, 5, 3]]
    >>> flat([1, [2, 3, 5], [3, [3, 5, 3]]], math.inf)
    [1, 2, 3, 5, 3, 3, 5, 3]
    >>> includes([1, 2, 3, 4, 5], 3)
    True
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from typing import Any

from closurekit.core.errors import ConfigError

# Only these are descended into; str, bytes, dict and friends stay whole.
NESTED_TYPES: tuple[type, ...] = (list, tuple)


def _check_depth(depth: Any) -> float:
    if isinstance(depth, bool) or not isinstance(depth, (int, float)):
        raise ConfigError("depth", depth, f"depth must be a number, got {depth!r}")
    if math.isnan(depth):
        raise ConfigError("depth", depth, "depth must not be NaN")
    return max(depth, 0)


def flat(sequence: Sequence[Any], depth: float = 1) -> list[Any]:
    """Return a new list with nested lists/tuples flattened up to ``depth`` levels.

    Args:
        sequence: List or tuple to flatten
        depth: Levels to descend (0 = shallow copy, ``math.inf`` = fully flat,
            negative behaves as 0)

    Raises:
        ConfigError: If ``depth`` is not a number or is NaN
    """
    remaining = _check_depth(depth)

    result: list[Any] = []
    # Explicit stack so full flattening does not hit the recursion limit.
    stack: list[tuple[Iterator[Any], float]] = [(iter(sequence), remaining)]
    while stack:
        items, level = stack[-1]
        for item in items:
            if level > 0 and isinstance(item, NESTED_TYPES):
                stack.append((iter(item), level - 1))
                break
            result.append(item)
        else:
            stack.pop()
    return result


def _strict_equals(left: Any, right: Any) -> bool:
    # bool is an int subclass in Python but never equal to a number here
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right

    numbers = (int, float)
    if isinstance(left, numbers) and isinstance(right, numbers):
        return left == right

    if type(left) is not type(right):
        return False
    if left is right and isinstance(left, (list, tuple, dict)):
        return True

    # Containers apply the same rule to every member
    if isinstance(left, (list, tuple)):
        return len(left) == len(right) and all(
            _strict_equals(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, dict):
        if left.keys() != right.keys():
            return False
        right_keys = {key: key for key in right}
        return all(
            _strict_equals(key, right_keys[key]) and _strict_equals(value, right[key])
            for key, value in left.items()
        )
    return left == right


def includes(sequence: Sequence[Any], element: Any, from_index: int = 0) -> bool:
    """Whether ``element`` occurs in ``sequence`` at or after ``from_index``.

    Equality is strict: values of different types never match (``1`` is not
    ``True`` or ``"1"``), except that ``int`` and ``float`` compare by value.
    ``nan`` never matches anything. Lists, tuples and dicts match when they
    are the same object or when their members match under the same rule, so
    ``[1]`` matches ``[1.0]`` but not ``[True]``.

    Args:
        sequence: Sequence to search
        element: Value to look for
        from_index: Start position; negative counts from the end and is
            clamped to 0

    Raises:
        ConfigError: If ``from_index`` is not an int
    """
    if isinstance(from_index, bool) or not isinstance(from_index, int):
        raise ConfigError("from_index", from_index, f"from_index must be an int, got {from_index!r}")

    length = len(sequence)
    start = max(length + from_index, 0) if from_index < 0 else from_index

    for index in range(start, length):
        if _strict_equals(sequence[index], element):
            return True
    return False


__all__ = ["NESTED_TYPES", "flat", "includes"]
