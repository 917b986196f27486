"""Helpers for the JSON-like values templates are rendered against.

Template data is whatever ``json.loads`` would produce: ``None``, ``bool``,
``int``/``float``, ``str``, lists and string-keyed mappings. Nothing here
reflects over arbitrary Python objects; anything else is an opaque leaf.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Union

Value = Union[
    None, bool, int, float, str, list[Any], tuple[Any, ...], Mapping[str, Any]
]


def is_number(value: Any) -> bool:
    """Return True for ints and floats, but not for booleans."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_truthy(value: Any) -> bool:
    """Coerce a value to a boolean for ``if`` and ``not``.

    ``None``, ``false``, ``0``, the empty string and the empty list are false.
    Everything else, including an empty mapping, is true.
    """
    if value is None or value is False:
        return False
    if is_number(value):
        return value != 0
    if isinstance(value, str) or is_list(value):
        return len(value) > 0
    return True


def format_number(value: int | float) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer():
        return str(int(value))
    return repr(value)


def to_text(value: Any) -> str:
    """Convert a value to the text emitted by an output directive.

    Lists and mappings have no textual form and render as the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return format_number(value)
    if isinstance(value, str):
        return value
    return ""


def length_of(value: Any) -> int | None:
    """Return the element or character count, or None if it has no length."""
    if isinstance(value, str) or is_list(value):
        return len(value)
    return None


def values_equal(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return bool(left == right)
