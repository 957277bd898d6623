"""
adaptive_card/canonical.py - Shared value normalisation
"""
import json
import math
from typing import Any


def canonical_json(obj: Any) -> str:
    """
    Canonical JSON serialization used for hashing:
        - sorted keys
        - no whitespace separation
        - ensure_ascii=True
        - reject NaN/Infinity (allow_nan=False)
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True, allow_nan=False)


def compact_json(obj: Any) -> str:
    """Compact JSON that keeps insertion order, for rendering objects into text."""
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def normalize_number(value: Any) -> Any:
    """
    Collapse numeric representations so 2 and 2.0 compare and render alike.

    Booleans are left alone (bool is an int subclass in Python but never a
    number in card data).
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def values_equal(left: Any, right: Any) -> bool:
    """Structural equality after numeric normalisation."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return normalize_number(left) == normalize_number(right)
    if isinstance(left, dict) and isinstance(right, dict):
        if left.keys() != right.keys():
            return False
        return all(values_equal(left[k], right[k]) for k in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(values_equal(a, b) for a, b in zip(left, right))
    if type(left) is not type(right):
        return False
    return left == right


def stringify_value(value: Any) -> str:
    """
    Render a resolved value into text for embedded substitution.

    null -> "", booleans -> "true"/"false", integral floats drop ".0",
    objects and arrays -> compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(normalize_number(value))
    return compact_json(value)
