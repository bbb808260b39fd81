"""Serialization of plist node trees to the XML property list format."""

from __future__ import annotations

import base64
import math
from datetime import datetime, timedelta, timezone
from typing import Iterator

from .nodes import (
    INT64_MAX,
    MAC_EPOCH,
    UINT64_MAX,
    Array,
    Boolean,
    Data,
    Date,
    Dictionary,
    Integer,
    Key,
    Node,
    Null,
    PlistError,
    PlistFormatError,
    Real,
    String,
    Uid,
)

XML_PLIST_PROLOG = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" '
    '"http://www.apple.com/DTDs/PropertyList-1.0.dtd">\n'
    '<plist version="1.0">\n'
)
XML_PLIST_EPILOG = "</plist>\n"

_MAX_INDENT = 8
_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ESCAPES = str.maketrans({"<": "&lt;", ">": "&gt;", "&": "&amp;"})


def _max_data_bytes_per_line(indent: int) -> int:
    return ((76 - (indent << 3)) >> 2) * 3


def format_real(value: float) -> str:
    """Text form of a real value as written inside a <real> element."""
    value = float(value)
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "+infinity" if value > 0 else "-infinity"
    if value == 0.0:
        return "0.0"
    return "%.17g" % value


def _uid_text(node: Uid) -> str:
    value = node.value
    if value > INT64_MAX:
        value -= UINT64_MAX + 1
    return str(value)


def _date_text(node: Date) -> str | None:
    try:
        moment = _UNIX_EPOCH + timedelta(seconds=int(node.value) + MAC_EPOCH)
    except (OverflowError, ValueError):
        return None
    return (
        f"{moment.year}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}Z"
    )


def _emit_data(node: Data, depth: int) -> Iterator[str]:
    tabs = "\t" * depth
    indent = min(depth, _MAX_INDENT)
    line_tabs = "\t" * indent
    maxread = _max_data_bytes_per_line(indent)
    blob = node.value
    yield f"{tabs}<data>\n"
    for start in range(0, len(blob), maxread):
        chunk = base64.b64encode(blob[start:start + maxread]).decode("ascii")
        yield f"{line_tabs}{chunk}\n"
    yield f"{tabs}</data>\n"


def _emit(node: Node, depth: int) -> Iterator[str]:
    tabs = "\t" * depth
    if isinstance(node, Null):
        raise PlistFormatError("the null type cannot be written as XML")
    if isinstance(node, Boolean):
        yield f"{tabs}<{'true' if node.value else 'false'}/>\n"
    elif isinstance(node, Integer):
        yield f"{tabs}<integer>{node.value}</integer>\n"
    elif isinstance(node, Real):
        yield f"{tabs}<real>{format_real(node.value)}</real>\n"
    elif isinstance(node, (String, Key)):
        tag = "key" if isinstance(node, Key) else "string"
        yield f"{tabs}<{tag}>{node.value.translate(_ESCAPES)}</{tag}>\n"
    elif isinstance(node, Data):
        yield from _emit_data(node, depth)
    elif isinstance(node, Date):
        text = _date_text(node)
        yield f"{tabs}<date/>\n" if text is None else f"{tabs}<date>{text}</date>\n"
    elif isinstance(node, Uid):
        inner = "\t" * (depth + 1)
        yield f"{tabs}<dict>\n"
        yield f"{inner}<key>CF$UID</key>\n"
        yield f"{inner}<integer>{_uid_text(node)}</integer>\n"
        yield f"{tabs}</dict>\n"
    elif isinstance(node, Array):
        if not len(node):
            yield f"{tabs}<array/>\n"
            return
        yield f"{tabs}<array>\n"
        for child in node:
            yield from _emit(child, depth + 1)
        yield f"{tabs}</array>\n"
    elif isinstance(node, Dictionary):
        if not len(node):
            yield f"{tabs}<dict/>\n"
            return
        inner = "\t" * (depth + 1)
        yield f"{tabs}<dict>\n"
        for key, child in node.items():
            yield f"{inner}<key>{key.translate(_ESCAPES)}</key>\n"
            yield from _emit(child, depth + 1)
        yield f"{tabs}</dict>\n"
    else:
        raise PlistError(f"unknown node type {type(node).__name__}")


def _text_estimate(text: str, tag: str, indent: int) -> int:
    return len(text.encode("utf-8")) + (len(tag) << 1) + 6 + indent


def _child_estimate(node: Node, depth: int) -> int:
    try:
        return _estimate(node, depth)
    except PlistError:
        return 0


def _estimate(node: Node, depth: int) -> int:
    if isinstance(node, (Array, Dictionary)) and len(node):
        size = 0
        if isinstance(node, Array):
            for child in node:
                size += _child_estimate(child, depth + 1)
            size += (len("array") << 1) + 7
        else:
            child_indent = min(depth + 1, _MAX_INDENT)
            for key, child in node.items():
                size += _text_estimate(key, "key", child_indent)
                size += _child_estimate(child, depth + 1)
            size += (len("dict") << 1) + 7
        return size + (depth << 1)

    indent = min(depth, _MAX_INDENT)
    if isinstance(node, Data):
        length = len(node.value)
        req_lines = length // _max_data_bytes_per_line(indent) + 1
        b64len = length + length // 3
        b64len += b64len % 4
        size = b64len + (len("data") << 1) + 5 + (indent + 1) * (req_lines + 1) + 1
    elif isinstance(node, String):
        return _text_estimate(node.value, "string", indent)
    elif isinstance(node, Key):
        return _text_estimate(node.value, "key", indent)
    elif isinstance(node, Integer):
        size = len(str(node.value)) + (len("integer") << 1) + 6
    elif isinstance(node, Real):
        size = len(format_real(node.value)) + (len("real") << 1) + 6
    elif isinstance(node, Date):
        size = 20 + (len("date") << 1) + 6
    elif isinstance(node, Boolean):
        size = len("true" if node.value else "false") + 4
    elif isinstance(node, Dictionary):
        size = len("dict") + 4
    elif isinstance(node, Array):
        size = len("array") + 4
    elif isinstance(node, Uid):
        size = len(_uid_text(node)) + (len("dict") << 1) + 7
        size += indent + ((indent + 1) << 1)
        size += 18
        size += (len("integer") << 1) + 6
    elif isinstance(node, Null):
        raise PlistFormatError("the null type cannot be written as XML")
    else:
        raise PlistError(f"unknown node type {type(node).__name__}")
    return size + indent


def estimate_size(node: Node) -> int:
    """Buffer size estimate for the XML document of node, terminator included."""
    if not isinstance(node, Node):
        raise TypeError(f"expected a plist node, not {type(node).__name__}")
    return _estimate(node, 0) + len(XML_PLIST_PROLOG) + len(XML_PLIST_EPILOG) + 1


def to_xml(node: Node) -> str:
    """Serialize node and its children as an XML property list document."""
    if not isinstance(node, Node):
        raise TypeError(f"expected a plist node, not {type(node).__name__}")
    body = "".join(_emit(node, 0))
    return XML_PLIST_PROLOG + body + XML_PLIST_EPILOG