#!/usr/bin/env python3
"""
Canonical JSON micro-tests: exact bytes for hashing, plus the value
normalisation rules shared by equality and text rendering.
"""

import hashlib

import pytest

from adaptive_card.canonical import canonical_json, stringify_value, values_equal
from adaptive_card.trace import hash_value


CASES = [
    ("{}", {}, '{}'),
    ("key ordering", {"z": 1, "a": 2, "m": 3}, '{"a":2,"m":3,"z":1}'),
    ("no whitespace", {"key": "value"}, '{"key":"value"}'),
    ("nested objects", {"outer": {"inner": "value"}}, '{"outer":{"inner":"value"}}'),
    ("boolean true/false", {"t": True, "f": False}, '{"f":false,"t":true}'),
    ("unicode escape", {"emoji": "🎉"}, '{"emoji":"\\ud83c\\udf89"}'),
]

# Frozen SHA-256 of canonical "{}"
EMPTY_OBJECT_SHA256 = "44136fa355b3678a1146ad16f7e8649e94fb4fc21fe77e8310c060f61caaff8a"


def test_canonical_bytes():
    """Each object must serialize to the exact expected text."""
    for name, obj, expected in CASES:
        assert canonical_json(obj) == expected, name


def test_nan_rejected():
    with pytest.raises(ValueError):
        canonical_json({"x": float("nan")})


def test_hash_value_is_prefixed_sha256():
    assert hash_value({}) == "sha256:" + EMPTY_OBJECT_SHA256
    assert hashlib.sha256(b"{}").hexdigest() == EMPTY_OBJECT_SHA256


def test_hash_value_ignores_key_order():
    assert hash_value({"a": 1, "b": 2}) == hash_value({"b": 2, "a": 1})


def test_hash_value_of_unserializable_is_none():
    assert hash_value({"x": float("inf")}) is None
    assert hash_value({1, 2}) is None


@pytest.mark.parametrize("left,right,equal", [
    (1, 1.0, True),
    (True, 1, False),
    (False, 0, False),
    ("1", 1, False),
    ({"a": [1, 2.0]}, {"a": [1.0, 2]}, True),
    ({"a": 1}, {"a": 1, "b": 2}, False),
    (None, None, True),
    ([], {}, False),
])
def test_values_equal(left, right, equal):
    assert values_equal(left, right) is equal


@pytest.mark.parametrize("value,text", [
    (None, ""),
    (True, "true"),
    (2.0, "2"),
    (2.5, "2.5"),
    ("x", "x"),
    ({"a": [1, "é"]}, '{"a":[1,"é"]}'),
])
def test_stringify_value(value, text):
    assert stringify_value(value) == text
