"""Low-level text scanning for the XML property list reader."""

from __future__ import annotations

from dataclasses import dataclass, field

from .nodes import PlistParseError

_WHITESPACE = " \t\r\n"
_TAG_END_CHARS = " \r\n\t>"


@dataclass(frozen=True)
class TextPart:
    """A run of element text; CDATA runs are kept apart since they are not unescaped."""

    text: str
    is_cdata: bool = False


@dataclass
class Scanner:
    """A cursor over XML text, limited to the range [pos, end)."""

    text: str
    pos: int = 0
    end: int | None = field(default=None)

    def __post_init__(self) -> None:
        if self.end is None or self.end > len(self.text):
            self.end = len(self.text)

    def _char(self) -> str:
        return self.text[self.pos]

    def _at(self, literal: str) -> bool:
        stop = self.pos + len(literal)
        return stop <= self.end and self.text.startswith(literal, self.pos, stop)

    def skip_whitespace(self) -> None:
        """Advance past spaces, tabs, carriage returns and newlines."""
        while self.pos < self.end and self.text[self.pos] in _WHITESPACE:
            self.pos += 1

    def _skip_quoted(self) -> bool:
        """Step over a double-quoted run starting at the current quote.

        Leaves the cursor on the closing quote; False when input ran out.
        """
        self.pos += 1
        self.find_char('"', False)
        return self.pos < self.end

    def find_char(self, char: str, skip_quotes: bool = False) -> None:
        """Advance to the next occurrence of char, or to the end."""
        while self.pos < self.end and self.text[self.pos] != char:
            if skip_quotes and char != '"' and self.text[self.pos] == '"':
                if not self._skip_quoted():
                    return
            self.pos += 1

    def find_str(self, text: str, skip_quotes: bool = False) -> None:
        """Advance to the next occurrence of text.

        When it is not found the cursor stops len(text) characters before the end.
        """
        limit = self.end - len(text)
        while self.pos < limit:
            if self.text.startswith(text, self.pos):
                break
            if skip_quotes and self.text[self.pos] == '"':
                if not self._skip_quoted():
                    return
            self.pos += 1

    def find_next(self, chars: str, skip_quotes: bool = False) -> None:
        """Advance to the next character that is one of chars, or to the end."""
        while self.pos < self.end:
            if skip_quotes and self.text[self.pos] == '"':
                if not self._skip_quoted():
                    return
            if self.text[self.pos] in chars:
                return
            self.pos += 1

    def _describe_tag(self) -> str:
        start = self.pos
        self.find_next(_TAG_END_CHARS, True)
        return self.text[start:self.pos]

    def text_parts(self, tag: str, skip_whitespace: bool = False) -> list[TextPart]:
        """Collect the text of an element up to and including its closing tag.

        Comments are dropped, CDATA sections become separate parts, and any
        other markup inside the element is an error.
        """
        parts: list[TextPart] = []
        if skip_whitespace:
            self.skip_whitespace()
        while True:
            start = self.pos
            self.find_char("<", False)
            if self.pos >= self.end or self._char() != "<":
                raise PlistParseError("EOF while looking for closing tag")
            lt = self.pos
            self.pos += 1
            if self.pos >= self.end:
                raise PlistParseError(f"EOF while parsing <{tag}> content")
            marker = self._char()
            if marker == "!":
                self.pos += 1
                if self.pos >= self.end - 1:
                    raise PlistParseError("EOF while parsing <! special tag")
                if self._at("--"):
                    parts.append(TextPart(self.text[start:lt]))
                    self.pos += 2
                    self.find_str("-->", False)
                    if self.pos > self.end - 3 or not self._at("-->"):
                        raise PlistParseError("EOF while looking for end of comment")
                    self.pos += 3
                elif self._char() == "[":
                    self.pos += 1
                    if self.pos >= self.end - 8:
                        raise PlistParseError("EOF while parsing <[ tag")
                    if self._at("CDATA["):
                        if lt > start:
                            parts.append(TextPart(self.text[start:lt]))
                        self.pos += 6
                        cdata_start = self.pos
                        self.find_str("]]>", False)
                        if self.pos > self.end - 3 or not self._at("]]>"):
                            raise PlistParseError("EOF while looking for end of CDATA block")
                        parts.append(TextPart(self.text[cdata_start:self.pos], True))
                        self.pos += 3
                    else:
                        name = self._describe_tag()
                        raise PlistParseError(
                            f"Invalid special tag <[{name}> encountered inside <{tag}> tag"
                        )
                else:
                    name = self._describe_tag()
                    raise PlistParseError(
                        f"Invalid special tag <!{name}> encountered inside <{tag}> tag"
                    )
            elif marker == "/":
                break
            else:
                name = self._describe_tag()
                raise PlistParseError(f"Invalid tag <{name}> encountered inside <{tag}> tag")

        self.pos += 1
        if self.pos >= self.end - len(tag) or not self._at(tag):
            raise PlistParseError("EOF or end tag mismatch")
        self.pos += len(tag)
        self.skip_whitespace()
        if self.pos >= self.end:
            raise PlistParseError("EOF while parsing closing tag")
        if self._char() != ">":
            raise PlistParseError(f"Invalid closing tag; expected '>', found {self._char()!r}")
        self.pos += 1
        if lt > start:
            parts.append(TextPart(self.text[start:lt]))
        return parts


_NAMED_ENTITIES = (("amp", "&"), ("apos", "'"), ("quot", '"'), ("lt", "<"), ("gt", ">"))


def _parse_unsigned(text: str, base: int) -> tuple[int, int]:
    """Read a leading unsigned number; returns (value, characters consumed)."""
    pos = 0
    while pos < len(text) and text[pos] in " \t\n\r\f\v":
        pos += 1
    negative = False
    if pos < len(text) and text[pos] in "+-":
        negative = text[pos] == "-"
        pos += 1
    if base == 16 and text[pos:pos + 2].lower() == "0x" and text[pos + 2:pos + 3]:
        if text[pos + 2] in "0123456789abcdefABCDEF":
            pos += 2
    digits_start = pos
    allowed = "0123456789abcdefABCDEF" if base == 16 else "0123456789"
    while pos < len(text) and text[pos] in allowed:
        pos += 1
    if pos == digits_start:
        return 0, 0
    value = int(text[digits_start:pos], base)
    if negative and value:
        value = (-value) % (1 << 64)
    return value, pos


def _numeric_reference(name: str) -> str:
    if len(name) > 8:
        raise PlistParseError(
            f"Invalid numerical character reference, sequence too long: &{name};"
        )
    if name[1:2] in ("x", "X"):
        if len(name) < 3:
            raise PlistParseError(
                f"Invalid numerical character reference, sequence too short: &{name};"
            )
        value, consumed = _parse_unsigned(name[2:], 16)
        consumed += 2
    else:
        if len(name) < 2:
            raise PlistParseError(
                f"Invalid numerical character reference, sequence too short: &{name};"
            )
        value, consumed = _parse_unsigned(name[1:], 10)
        consumed += 1
    if value == 0 or value > 0x10FFFF or consumed != len(name):
        raise PlistParseError(f"Invalid numerical character reference found: &{name};")
    return chr(value)


def _entity(name: str) -> str:
    for prefix, replacement in _NAMED_ENTITIES:
        if name.startswith(prefix):
            return replacement
    if name.startswith("#"):
        return _numeric_reference(name)
    raise PlistParseError(f"Invalid entity encountered: &{name};")


def unescape_entities(text: str) -> str:
    """Replace the predefined XML entities and numeric character references."""
    out: list[str] = []
    length = len(text)
    i = 0
    while i < length - 1:
        if text[i] == "&":
            end = text.find(";", i)
            if end < 0:
                raise PlistParseError(
                    "Invalid entity sequence encountered (missing terminating ';')"
                )
            name = text[i + 1:end]
            if not name:
                raise PlistParseError("Invalid empty entity sequence &;")
            out.append(_entity(name))
            i = end + 1
            continue
        out.append(text[i])
        i += 1
    out.append(text[i:])
    return "".join(out)


def join_text_parts(parts: list[TextPart], unescape: bool = False) -> str:
    """Concatenate parts, unescaping entities in the non-CDATA ones when asked."""
    return "".join(
        unescape_entities(part.text) if unescape and not part.is_cdata else part.text
        for part in parts
    )