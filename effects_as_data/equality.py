"""
Structural equality for command descriptors and injected values.

Mappings compare by key set and values, ignoring insertion order. Lists and
tuples are interchangeable ordered sequences. Dataclass instances compare by
type and field values. Anything else falls back to ``==``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

_SEQUENCE_TYPES = (list, tuple)


def structural_equal(expected: Any, actual: Any) -> bool:
    return first_difference(expected, actual) is None


def first_difference(expected: Any, actual: Any, path: tuple[Any, ...] = ()) -> tuple[Any, ...] | None:
    """Return the path to the first difference, or ``None`` when equal.

    The path is a tuple of mapping keys and sequence indices leading from the
    root to the differing value.
    """

    if isinstance(expected, Mapping) and isinstance(actual, Mapping):
        missing = [k for k in expected if k not in actual]
        if missing:
            return path + (missing[0],)
        extra = [k for k in actual if k not in expected]
        if extra:
            return path + (extra[0],)
        for key in expected:
            diff = first_difference(expected[key], actual[key], path + (key,))
            if diff is not None:
                return diff
        return None

    if isinstance(expected, _SEQUENCE_TYPES) and isinstance(actual, _SEQUENCE_TYPES):
        for index, (left, right) in enumerate(zip(expected, actual)):
            diff = first_difference(left, right, path + (index,))
            if diff is not None:
                return diff
        if len(expected) != len(actual):
            return path + (min(len(expected), len(actual)),)
        return None

    if _is_dataclass_instance(expected) and _is_dataclass_instance(actual):
        if type(expected) is not type(actual):
            return path
        for f in dataclasses.fields(expected):
            diff = first_difference(getattr(expected, f.name), getattr(actual, f.name), path + (f.name,))
            if diff is not None:
                return diff
        return None

    if isinstance(expected, (Mapping, *_SEQUENCE_TYPES)) or isinstance(actual, (Mapping, *_SEQUENCE_TYPES)):
        # One side is a container and the other is not.
        return path

    try:
        equal = bool(expected == actual)
    except (TypeError, ValueError):
        # e.g. array-likes whose truth value is ambiguous
        return path
    return None if equal else path


def _is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


__all__ = ["first_difference", "structural_equal"]
