"""Parsing of XML property list documents into plist node trees."""

from __future__ import annotations

import base64
import math
import re

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
    Node,
    PlistParseError,
    Real,
    String,
    Uid,
)
from .xml_text import Scanner, join_text_parts

_C_WHITESPACE = " \t\n\r\f\v"
_B64_ALPHABET = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/")
_FLOAT_PREFIX = re.compile(
    r"[ \t\n\r\f\v]*"
    r"(?P<sign>[+-]?)"
    r"(?:"
    r"0[xX](?P<hex>(?:[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?\d+)?)"
    r"|(?P<dec>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<inf>[iI][nN][fF](?:[iI][nN][iI][tT][yY])?)"
    r"|(?P<nan>[nN][aA][nN])"
    r")"
)

# (maximum digits, minimum, maximum) for each numeric field, then the separator after it.
_DATE_FIELDS = (
    ((4, 0, 9999), "-"),
    ((2, 1, 12), "-"),
    ((2, 1, 31), "T"),
    ((2, 0, 23), ":"),
    ((2, 0, 59), ":"),
    ((2, 0, 61), "Z"),
)


def _days_from_civil(year: int, month: int, day: int) -> int:
    """Days since 1970-01-01 in the proleptic Gregorian calendar."""
    year -= month <= 2
    era = (year if year >= 0 else year - 399) // 400
    year_of_era = year - era * 400
    day_of_year = (153 * (month + (-3 if month > 2 else 9)) + 2) // 5 + day - 1
    day_of_era = year_of_era * 365 + year_of_era // 4 - year_of_era // 100 + day_of_year
    return era * 146097 + day_of_era - 719468


def parse_date(text: str) -> int:
    """Read a YYYY-MM-DDThh:mm:ssZ timestamp into seconds since 1970-01-01 UTC.

    Fields are read in order and parsing stops at the first one that does not
    match; fields not reached keep the values of an all-zero calendar record
    (year 1900, first month, day zero, midnight).
    """
    values = [1900, 1, 0, 0, 0, 0]
    pos = 0
    for index, ((width, low, high), separator) in enumerate(_DATE_FIELDS):
        while pos < len(text) and text[pos] in _C_WHITESPACE:
            pos += 1
        start = pos
        while pos < len(text) and pos - start < width and text[pos].isdigit():
            pos += 1
        if pos == start:
            break
        number = int(text[start:pos])
        if not low <= number <= high:
            break
        values[index] = number
        if not text.startswith(separator, pos):
            break
        pos += len(separator)
    year, month, day, hour, minute, second = values
    days = _days_from_civil(year, month, 1) + day - 1
    return days * 86400 + hour * 3600 + minute * 60 + second


def _strtoull(text: str) -> int:
    """Read a leading unsigned integer with automatic base, saturating on overflow."""
    rest = text.lstrip(_C_WHITESPACE)
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest[:2] in ("0x", "0X") and rest[2:3] and rest[2] in "0123456789abcdefABCDEF":
        base, allowed, rest = 16, "0123456789abcdefABCDEF", rest[2:]
    elif rest.startswith("0"):
        base, allowed = 8, "01234567"
    else:
        base, allowed = 10, "0123456789"
    end = 0
    while end < len(rest) and rest[end] in allowed:
        end += 1
    if end == 0:
        return 0
    magnitude = int(rest[:end], base)
    if magnitude > UINT64_MAX:
        return UINT64_MAX
    return (-magnitude) & UINT64_MAX if negative else magnitude


def _atof(text: str) -> float:
    """Read a leading floating point number; 0.0 when there is none."""
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        return 0.0
    sign = -1.0 if match.group("sign") == "-" else 1.0
    if match.group("hex") is not None:
        hex_text = match.group("hex")
        if "p" not in hex_text.lower():
            hex_text += "p0"
        return sign * float.fromhex("0x" + hex_text)
    if match.group("dec") is not None:
        return sign * float(match.group("dec"))
    if match.group("inf") is not None:
        return sign * math.inf
    return math.copysign(math.nan, sign)


def _decode_base64(text: str) -> bytes:
    cleaned = "".join(char for char in text if char in _B64_ALPHABET)
    if len(cleaned) % 4 == 1:
        cleaned = cleaned[:-1]
    return base64.b64decode(cleaned + "=" * (-len(cleaned) % 4))


def _integer_node(content: str) -> Integer:
    negative = content[:1] == "-"
    body = content[1:] if content[:1] in ("+", "-") else content
    value = _strtoull(body)
    if negative or value <= INT64_MAX:
        if negative:
            value = (-value) & UINT64_MAX
        if value > INT64_MAX:
            value -= UINT64_MAX + 1
    return Integer(value)


class _XmlReader:
    def __init__(self, text: str) -> None:
        self.scan = Scanner(text)
        self.root: Node | None = None
        self.parent: Node | None = None
        self.keyname: str | None = None
        self.path: list[str] = []
        self.has_content = False

    def _char(self) -> str:
        return self.scan.text[self.scan.pos]

    def _at(self, literal: str) -> bool:
        scan = self.scan
        return scan.text.startswith(literal, scan.pos, scan.end)

    def parse(self) -> Node | None:
        scan = self.scan
        while scan.pos < scan.end:
            scan.skip_whitespace()
            if scan.pos >= scan.end:
                break
            if self._char() != "<":
                start = scan.pos
                scan.find_next(" \t\r\n", False)
                raise PlistParseError(
                    f"Expected: opening tag, found: {scan.text[start:scan.pos]}"
                )
            scan.pos += 1
            if scan.pos >= scan.end:
                raise PlistParseError("EOF while parsing tag")
            marker = self._char()
            if marker == "?":
                self._skip_declaration()
            elif marker == "!":
                self._skip_special()
            else:
                outcome = self._element()
                if outcome == "done":
                    return self._finish()
                if outcome == "stop":
                    break
        if self.path:
            raise PlistParseError(f"EOF encountered while </{self.path[-1]}> was expected")
        return self._finish()

    def _skip_declaration(self) -> None:
        scan = self.scan
        scan.find_str("?>", True)
        if scan.pos > scan.end - 2:
            raise PlistParseError("EOF while looking for <? tag closing marker")
        if not self._at("?>"):
            raise PlistParseError("Couldn't find <? tag closing marker")
        scan.pos += 2

    def _skip_special(self) -> None:
        scan = self.scan
        if scan.end - scan.pos > 3 and self._at("!--"):
            scan.pos += 3
            scan.find_str("-->", False)
            if scan.pos > scan.end - 3 or not self._at("-->"):
                raise PlistParseError("Couldn't find end of comment")
            scan.pos += 3
        elif scan.end - scan.pos > 8 and self._at("!DOCTYPE"):
            scan.pos += 8
            embedded_dtd = False
            while scan.pos < scan.end:
                scan.find_next(" \t\r\n[>", True)
                if scan.pos >= scan.end:
                    raise PlistParseError("EOF while parsing !DOCTYPE")
                if self._char() == "[":
                    embedded_dtd = True
                    break
                if self._char() == ">":
                    scan.pos += 1
                    break
                scan.skip_whitespace()
            if embedded_dtd:
                scan.find_str("]>", True)
                if scan.pos > scan.end - 2 or not self._at("]>"):
                    raise PlistParseError("Couldn't find end of DOCTYPE")
                scan.pos += 2
        else:
            start = scan.pos
            scan.find_next(" \r\n\t>", True)
            raise PlistParseError(
                f"Invalid or incomplete special tag <{scan.text[start:scan.pos]}> encountered"
            )

    def _read_tag(self) -> tuple[str, bool]:
        scan = self.scan
        start = scan.pos
        scan.find_next(" \r\n\t<>", False)
        if scan.pos >= scan.end:
            raise PlistParseError("Unexpected EOF while parsing XML")
        tag = scan.text[start:scan.pos]
        if self._char() != ">":
            scan.find_next("<>", True)
        if scan.pos >= scan.end:
            raise PlistParseError("Unexpected EOF while parsing XML")
        if self._char() != ">":
            raise PlistParseError(f"Missing '>' for tag <{tag}")
        is_empty = False
        if scan.text[scan.pos - 1] == "/":
            cut = scan.pos - start - 1
            if cut < len(tag):
                tag = tag[:cut]
            is_empty = True
        scan.pos += 1
        return tag, is_empty

    def _element(self) -> str | None:
        tag, is_empty = self._read_tag()
        if tag == "plist":
            self.has_content = False
            if not self.path and self.root is not None:
                return "stop"
            if is_empty:
                raise PlistParseError("Empty plist tag")
            self.path.append("plist")
            return None
        if tag == "/plist":
            if not self.has_content:
                raise PlistParseError("encountered empty plist tag")
            self._pop_path(tag)
            return None

        self.has_content = True
        if tag.startswith("/"):
            return self._close(tag)
        node = self._value(tag, is_empty)
        if node is None:
            return None
        outcome = self._attach(node, is_empty)
        self.keyname = None
        return outcome

    def _pop_path(self, tag: str) -> None:
        if not self.path:
            raise PlistParseError(
                "node path is empty while trying to match closing tag with opening tag"
            )
        if self.path[-1] != tag[1:]:
            raise PlistParseError(
                f"mismatching closing tag <{tag}> found for opening tag <{self.path[-1]}>"
            )
        self.path.pop()

    def _close(self, tag: str) -> str | None:
        self._pop_path(tag)
        self.keyname = None
        self.parent = self.parent.parent if self.parent is not None else None
        return "done" if self.parent is None else None

    def _content(self, tag: str, skip_whitespace: bool) -> str | None:
        parts = self.scan.text_parts(tag, skip_whitespace)
        return join_text_parts(parts, False) if parts else None

    def _value(self, tag: str, is_empty: bool) -> Node | None:
        if tag == "dict":
            return Dictionary()
        if tag == "array":
            return Array()
        if tag == "integer":
            content = None if is_empty else self._content(tag, True)
            return Integer(0) if content is None else _integer_node(content)
        if tag == "real":
            content = None if is_empty else self._content(tag, True)
            return Real(0.0 if content is None else _atof(content))
        if tag in ("true", "false"):
            if not is_empty:
                self.scan.text_parts(tag, True)
            return Boolean(tag == "true")
        if tag in ("string", "key"):
            if is_empty:
                return String("")
            text = join_text_parts(self.scan.text_parts(tag, False), True)
            if tag == "key" and self.keyname is None and isinstance(self.parent, Dictionary):
                self.keyname = text
                return None
            return String(text)
        if tag == "data":
            if is_empty:
                return Data(b"")
            parts = self.scan.text_parts(tag, True)
            if not parts:
                return Data(b"")
            content = join_text_parts(parts, False)
            return Data(_decode_base64(content[:len(parts[0].text)]))
        if tag == "date":
            if is_empty:
                return Date(0.0)
            content = self._content(tag, True)
            timev = 0
            if content is not None and 11 <= len(content) < 32:
                timev = parse_date(content)
            return Date(float(timev - MAC_EPOCH))
        self.scan.pos = self.scan.end
        raise PlistParseError(f"Unexpected tag <{tag}{'/' if is_empty else ''}> encountered")

    def _attach(self, node: Node, is_empty: bool) -> str | None:
        is_container = isinstance(node, (Array, Dictionary))
        if self.root is None:
            self.root = node
            if not is_container:
                return "done"
            self.parent = node
        elif isinstance(self.parent, Dictionary):
            if self.keyname is None:
                raise PlistParseError("missing key name while adding dict item")
            self.parent.set(self.keyname, node)
        elif isinstance(self.parent, Array):
            self.parent.append(node)
        else:
            raise PlistParseError("parent is not a structured node")
        if not is_empty and is_container:
            self.path.append("dict" if isinstance(node, Dictionary) else "array")
            self.parent = node
        return None

    def _finish(self) -> Node | None:
        root = self.root
        if isinstance(root, Dictionary) and len(root) == 1:
            value = root.get("CF$UID")
            if isinstance(value, Integer):
                return Uid(value.unsigned_value())
        return root


def from_xml(data: str | bytes | bytearray) -> Node | None:
    """Parse an XML property list document.

    Returns None when the document holds no value at all; raises
    PlistParseError when the document is malformed.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        try:
            text = bytes(data).decode("utf-8")
        except UnicodeDecodeError as error:
            raise PlistParseError(f"XML plist data is not valid UTF-8: {error}") from error
    elif isinstance(data, str):
        text = data
    else:
        raise TypeError(f"expected str or bytes, not {type(data).__name__}")
    if not text:
        raise ValueError("no XML plist data given")
    return _XmlReader(text).parse()