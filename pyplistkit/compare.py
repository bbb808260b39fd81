"""Value comparisons between plist nodes and between nodes and plain Python values."""

from __future__ import annotations

import sys

from .nodes import (
    Array,
    Boolean,
    Data,
    Date,
    Dictionary,
    Integer,
    Key,
    Node,
    Null,
    Real,
    String,
    Uid,
)


def _require(node: Node | None, expected: type) -> None:
    if not isinstance(node, expected):
        found = "None" if node is None else type(node).__name__
        raise TypeError(f"expected a {expected.__name__} node, not {found}")


def _sign(left: object, right: object) -> int:
    if left == right:
        return 0
    return 1 if left > right else -1  # type: ignore[operator]


def values_equal(left: Node | None, right: Node | None) -> bool:
    """True when both nodes have the same type and the same value.

    Arrays and dictionaries are compared item by item.
    """
    if left is None or right is None:
        return False
    if type(left) is not type(right):
        return False
    if isinstance(left, Null):
        return True
    if isinstance(left, Array):
        assert isinstance(right, Array)
        return len(left) == len(right) and all(
            values_equal(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, Dictionary):
        assert isinstance(right, Dictionary)
        if left.keys() != right.keys() and set(left.keys()) != set(right.keys()):
            return False
        return all(values_equal(node, right[key]) for key, node in left.items())
    return left.value == right.value  # type: ignore[attr-defined]


def int_compare(node: Integer, value: int) -> int:
    """Compare an Integer node with a signed integer: -1, 0 or 1."""
    _require(node, Integer)
    return _sign(node.value, value)


def uint_compare(node: Integer, value: int) -> int:
    """Compare an Integer node, read as unsigned, with an unsigned integer."""
    _require(node, Integer)
    return _sign(node.unsigned_value(), value)


def uid_compare(node: Uid, value: int) -> int:
    """Compare a Uid node with an unsigned integer: -1, 0 or 1."""
    _require(node, Uid)
    return _sign(node.value, value)


def real_compare(node: Real, value: float) -> int:
    """Compare a Real node with a float, treating nearly equal values as equal."""
    _require(node, Real)
    a = node.value
    b = float(value)
    if a == b:
        return 0
    epsilon = sys.float_info.epsilon
    tiny = sys.float_info.min
    diff = abs(a - b)
    magnitude = abs(a) + abs(b)
    if a == 0.0 or b == 0.0 or magnitude < tiny:
        if diff < epsilon * tiny:
            return 0
    elif diff / min(magnitude, sys.float_info.max) < epsilon:
        return 0
    return 1 if a > b else -1


def date_compare(node: Date, seconds: int, microseconds: int) -> int:
    """Compare a Date node with seconds and microseconds since the reference date."""
    _require(node, Date)
    return _sign(node.value, seconds + microseconds / 1_000_000)


def _text_compare(node: Node, kind: type, value: str, size: int | None) -> int:
    _require(node, kind)
    left = node.value.encode("utf-8")  # type: ignore[attr-defined]
    right = value.encode("utf-8")
    if size is not None:
        if size < 0:
            raise ValueError("size must not be negative")
        left = left[:size]
        right = right[:size]
    return _sign(left, right)


def _text_contains(node: Node, kind: type, substring: str) -> bool:
    _require(node, kind)
    return substring in node.value  # type: ignore[attr-defined]


def string_compare(node: String, value: str) -> int:
    """Compare a String node with a string like strcmp, returning -1, 0 or 1."""
    return _text_compare(node, String, value, None)


def string_compare_with_size(node: String, value: str, size: int) -> int:
    """Compare at most size bytes of a String node with a string, like strncmp."""
    return _text_compare(node, String, value, size)


def string_contains(node: String, substring: str) -> bool:
    """True when the String node's value contains substring."""
    return _text_contains(node, String, substring)


def key_compare(node: Key, value: str) -> int:
    """Compare a Key node with a string like strcmp, returning -1, 0 or 1."""
    return _text_compare(node, Key, value, None)


def key_compare_with_size(node: Key, value: str, size: int) -> int:
    """Compare at most size bytes of a Key node with a string, like strncmp."""
    return _text_compare(node, Key, value, size)


def key_contains(node: Key, substring: str) -> bool:
    """True when the Key node's value contains substring."""
    return _text_contains(node, Key, substring)


def data_compare(node: Data, value: bytes) -> int:
    """Full match of a Data node against a blob; lengths must agree for equality."""
    _require(node, Data)
    blob = node.value
    other = bytes(value)
    if len(blob) < len(other):
        return -1
    if len(blob) > len(other):
        return 1
    return _sign(blob, other)


def data_compare_with_size(node: Data, value: bytes, size: int) -> int:
    """Compare the first size bytes of a Data node with a blob ("starts with")."""
    _require(node, Data)
    if size < 0:
        raise ValueError("size must not be negative")
    blob = node.value
    other = bytes(value)
    if len(other) < size:
        raise ValueError("value is shorter than size")
    if len(blob) < size:
        return -1
    return _sign(blob[:size], other[:size])


def data_contains(node: Data, value: bytes) -> bool:
    """True when the Data node's bytes contain value."""
    _require(node, Data)
    return bytes(value) in node.value