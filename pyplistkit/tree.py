"""Helpers that walk, sort and read values out of plist node trees."""

from __future__ import annotations

import string
from typing import Callable

from .nodes import (
    INT64_MAX,
    INT64_MIN,
    UINT64_MAX,
    Array,
    Boolean,
    Data,
    Dictionary,
    Integer,
    Node,
    String,
)

BINARY_MAGIC = b"bplist00"


def access_path(node: Node | None, *args: int | str) -> Node | None:
    """Follow array indices and dictionary keys from node.

    Returns None when a step names a missing item or descends into a
    node that is neither an array nor a dictionary.
    """
    current = node
    for step in args:
        if current is None:
            return None
        if isinstance(current, Array):
            if isinstance(step, bool) or not isinstance(step, int):
                return None
            if not 0 <= step < len(current):
                return None
            current = current[step]
        elif isinstance(current, Dictionary):
            if not isinstance(step, str):
                return None
            current = current.get(step)
        else:
            return None
    return current


def sort_plist(node: Node | None) -> None:
    """Sort every dictionary in the tree by key, recursing into children."""
    if isinstance(node, Array):
        for child in node:
            sort_plist(child)
    elif isinstance(node, Dictionary):
        for key in sorted(node.keys()):
            child = node.remove(key)
            node.set(key, child)
            sort_plist(child)


def _parse_c_integer(text: str) -> tuple[bool, int]:
    """Read a leading integer like strtol with base 0: (negative, magnitude)."""
    stripped = text.lstrip(" \t\n\r\f\v")
    negative = False
    if stripped[:1] in ("+", "-"):
        negative = stripped[0] == "-"
        stripped = stripped[1:]
    base = 10
    digits_allowed = string.digits
    if stripped[:2].lower() == "0x" and stripped[2:3] and stripped[2] in string.hexdigits:
        base = 16
        digits_allowed = string.hexdigits
        stripped = stripped[2:]
    elif stripped.startswith("0"):
        base = 8
        digits_allowed = "01234567"
    magnitude = 0
    for char in stripped:
        if char not in digits_allowed:
            break
        magnitude = magnitude * base + int(char, 16)
    return negative, magnitude


def _strtoll(text: str) -> int:
    negative, magnitude = _parse_c_integer(text)
    value = -magnitude if negative else magnitude
    return max(INT64_MIN, min(INT64_MAX, value))


def _strtoull(text: str) -> int:
    negative, magnitude = _parse_c_integer(text)
    if magnitude > UINT64_MAX:
        return UINT64_MAX
    return (-magnitude) & UINT64_MAX if negative else magnitude


def _data_integer(blob: bytes, signed: bool) -> int:
    if len(blob) not in (1, 2, 4, 8):
        return 0
    return int.from_bytes(blob, "little", signed=signed)


def dict_get_bool(dictionary: Dictionary, key: str) -> bool:
    """Read a boolean from a Boolean, "true"/"false" String, Integer or one-byte Data entry."""
    node = dictionary.get(key)
    if isinstance(node, Boolean):
        return node.value
    if isinstance(node, Integer):
        return not node.is_negative() and node.value != 0
    if isinstance(node, String):
        return node.value == "true"
    if isinstance(node, Data):
        return len(node.value) == 1 and node.value[0] != 0
    return False


def dict_get_int(dictionary: Dictionary, key: str) -> int:
    """Read a signed integer from an Integer, numeric String or 1/2/4/8-byte Data entry."""
    node = dictionary.get(key)
    if isinstance(node, Integer):
        return node.signed_value()
    if isinstance(node, String):
        return _strtoll(node.value)
    if isinstance(node, Data):
        return _data_integer(node.value, signed=True)
    return 0


def dict_get_uint(dictionary: Dictionary, key: str) -> int:
    """Read an unsigned integer from an Integer, numeric String or 1/2/4/8-byte Data entry."""
    node = dictionary.get(key)
    if isinstance(node, Integer):
        return node.unsigned_value()
    if isinstance(node, String):
        return _strtoull(node.value)
    if isinstance(node, Data):
        return _data_integer(node.value, signed=False)
    return 0


def _lookup(source: Dictionary, key: str, alt_source_key: str | None) -> tuple[str, Node]:
    lookup_key = alt_source_key if alt_source_key is not None else key
    node = source.get(lookup_key)
    if node is None:
        raise KeyError(lookup_key)
    return lookup_key, node


def dict_copy_item(
    target: Dictionary, source: Dictionary, key: str, alt_source_key: str | None = None
) -> None:
    """Copy the entry found under key (or alt_source_key) into target under key."""
    _, node = _lookup(source, key, alt_source_key)
    target.set(key, node.copy())


def _copy_converted(
    target: Dictionary,
    source: Dictionary,
    key: str,
    alt_source_key: str | None,
    reader: Callable[[Dictionary, str], object],
    factory: Callable[[object], Node],
) -> None:
    lookup_key, _ = _lookup(source, key, alt_source_key)
    target.set(key, factory(reader(source, lookup_key)))


def dict_copy_bool(
    target: Dictionary, source: Dictionary, key: str, alt_source_key: str | None = None
) -> None:
    """Copy an entry read as boolean; always stored as a Boolean node."""
    _copy_converted(target, source, key, alt_source_key, dict_get_bool, Boolean)


def dict_copy_int(
    target: Dictionary, source: Dictionary, key: str, alt_source_key: str | None = None
) -> None:
    """Copy an entry read as signed integer; always stored as an Integer node."""
    _copy_converted(target, source, key, alt_source_key, dict_get_int, Integer)


def dict_copy_uint(
    target: Dictionary, source: Dictionary, key: str, alt_source_key: str | None = None
) -> None:
    """Copy an entry read as unsigned integer; always stored as an Integer node."""
    _copy_converted(target, source, key, alt_source_key, dict_get_uint, Integer)


def _copy_typed(
    target: Dictionary,
    source: Dictionary,
    key: str,
    alt_source_key: str | None,
    expected: type,
) -> None:
    lookup_key, node = _lookup(source, key, alt_source_key)
    if not isinstance(node, expected):
        raise TypeError(f"entry {lookup_key!r} is not a {expected.__name__} node")
    target.set(key, node.copy())


def dict_copy_data(
    target: Dictionary, source: Dictionary, key: str, alt_source_key: str | None = None
) -> None:
    """Copy a Data entry; raises TypeError when the entry is of another kind."""
    _copy_typed(target, source, key, alt_source_key, Data)


def dict_copy_string(
    target: Dictionary, source: Dictionary, key: str, alt_source_key: str | None = None
) -> None:
    """Copy a String entry; raises TypeError when the entry is of another kind."""
    _copy_typed(target, source, key, alt_source_key, String)


def is_binary(data: bytes | bytearray | memoryview | str) -> bool:
    """True when the data starts with the binary plist magic."""
    if isinstance(data, str):
        data = data.encode("latin-1", errors="replace")
    return bytes(data[:8]) == BINARY_MAGIC