"""Property list node model: scalar values, arrays and dictionaries with parent links."""

from __future__ import annotations

import operator
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Any, Iterable, Iterator, Mapping

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1
MAC_EPOCH = 978307200
_MAC_EPOCH_DATETIME = datetime(2001, 1, 1, tzinfo=timezone.utc)


class PlistType(IntEnum):
    """Kinds of plist nodes."""

    NONE = -1
    BOOLEAN = 0
    INT = 1
    REAL = 2
    STRING = 3
    ARRAY = 4
    DICT = 5
    DATE = 6
    DATA = 7
    KEY = 8
    UID = 9
    NULL = 10


class PlistFormat(IntEnum):
    """Serialization formats."""

    NONE = 0
    XML = 1
    BINARY = 2
    JSON = 3
    OSTEP = 4
    PRINT = 10
    LIMD = 11
    PLUTIL = 12


class PlistError(Exception):
    """Base class for plist errors."""


class PlistParseError(PlistError):
    """Input data could not be parsed."""


class PlistFormatError(PlistError):
    """The plist holds nodes that the output format cannot represent."""


class Node:
    """Base class of every plist node."""

    type: PlistType = PlistType.NONE

    def __init__(self) -> None:
        self._parent: _Container | None = None

    @property
    def parent(self) -> "_Container | None":
        """The container holding this node, or None for a root."""
        return self._parent

    def copy(self) -> "Node":
        """Return a deep copy of this node, detached from any parent."""
        clone = object.__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone._parent = None
        clone._copy_children()
        return clone

    def detach(self) -> "Node":
        """Remove this node from its parent container and return it."""
        if self._parent is not None:
            self._parent._release(self)
        return self

    def _copy_children(self) -> None:
        """Hook for containers to replace shared children with copies."""


class _Scalar(Node):
    def __init__(self, value: Any) -> None:
        super().__init__()
        self.value = value

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, value: Any) -> None:
        self._value = self._coerce(value)

    def _coerce(self, value: Any) -> Any:
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"


class Boolean(_Scalar):
    """A true or false value."""

    type = PlistType.BOOLEAN

    def __init__(self, value: bool = False) -> None:
        super().__init__(value)

    def _coerce(self, value: Any) -> bool:
        return bool(value)


class Integer(_Scalar):
    """A 64-bit integer, signed or unsigned."""

    type = PlistType.INT

    def __init__(self, value: int = 0) -> None:
        super().__init__(value)

    def _coerce(self, value: Any) -> int:
        number = operator.index(value)
        if not INT64_MIN <= number <= UINT64_MAX:
            raise ValueError(f"integer {number} does not fit in 64 bits")
        return number

    @property
    def is_unsigned(self) -> bool:
        """True when the value only fits as an unsigned 64-bit integer."""
        return self._value > INT64_MAX

    def is_negative(self) -> bool:
        return self._value < 0

    def signed_value(self) -> int:
        """The value read as a signed 64-bit integer."""
        return self._value if self._value <= INT64_MAX else self._value - (UINT64_MAX + 1)

    def unsigned_value(self) -> int:
        """The value read as an unsigned 64-bit integer."""
        return self._value & UINT64_MAX


class Real(_Scalar):
    """A double precision floating point value."""

    type = PlistType.REAL

    def __init__(self, value: float = 0.0) -> None:
        super().__init__(value)

    def _coerce(self, value: Any) -> float:
        return float(value)


class _Text(_Scalar):
    def __init__(self, value: str = "") -> None:
        super().__init__(value)

    def _coerce(self, value: Any) -> str:
        if not isinstance(value, str):
            raise TypeError(f"{type(self).__name__} value must be str, not {type(value).__name__}")
        return value


class String(_Text):
    """A UTF-8 string."""

    type = PlistType.STRING


class Key(_Text):
    """A dictionary key as a standalone node."""

    type = PlistType.KEY


class Data(_Scalar):
    """A binary blob."""

    type = PlistType.DATA

    def __init__(self, value: bytes = b"") -> None:
        super().__init__(value)

    def _coerce(self, value: Any) -> bytes:
        if isinstance(value, str):
            raise TypeError("Data value must be bytes-like, not str")
        return bytes(value)


class Date(_Scalar):
    """A point in time, stored as seconds since 2001-01-01 00:00:00 UTC."""

    type = PlistType.DATE

    def __init__(self, seconds: float = 0.0, microseconds: int = 0) -> None:
        super().__init__(seconds + microseconds / 1_000_000)

    def _coerce(self, value: Any) -> float:
        return float(value)

    @property
    def seconds(self) -> int:
        """Whole seconds since the reference date, truncated toward zero."""
        return int(self._value)

    @property
    def microseconds(self) -> int:
        """Fraction of the second in microseconds."""
        return int(abs((self._value - int(self._value)) * 1_000_000))

    def to_datetime(self) -> datetime:
        """Return the date as an aware UTC datetime."""
        return _MAC_EPOCH_DATETIME + timedelta(seconds=self._value)

    @classmethod
    def from_datetime(cls, value: datetime) -> "Date":
        """Build a Date from a datetime; naive values are taken as UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return cls((value - _MAC_EPOCH_DATETIME).total_seconds())


class Uid(_Scalar):
    """An object reference used by keyed archives."""

    type = PlistType.UID

    def __init__(self, value: int = 0) -> None:
        super().__init__(value)

    def _coerce(self, value: Any) -> int:
        number = operator.index(value)
        if not 0 <= number <= UINT64_MAX:
            raise ValueError(f"uid {number} is outside the unsigned 64-bit range")
        return number


class Null(Node):
    """The null value."""

    type = PlistType.NULL

    def __repr__(self) -> str:
        return "Null()"


class _Container(Node):
    def _adopt(self, node: Node) -> None:
        if not isinstance(node, Node):
            raise TypeError(f"expected a plist node, not {type(node).__name__}")
        if node._parent is not None:
            raise ValueError("node already belongs to a container")
        ancestor: Node | None = self
        while ancestor is not None:
            if ancestor is node:
                raise ValueError("a node cannot be added inside itself")
            ancestor = ancestor._parent
        node._parent = self

    def _release(self, node: Node) -> None:
        raise ValueError("node is not a child of this container")


class Array(_Container):
    """An ordered list of nodes."""

    type = PlistType.ARRAY

    def __init__(self, items: Iterable[Node] = ()) -> None:
        super().__init__()
        self._items: list[Node] = []
        for node in items:
            self.append(node)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._items))

    def __getitem__(self, index: int) -> Node:
        return self._items[index]

    def __setitem__(self, index: int, node: Node) -> None:
        old = self._items[index]
        if old is node:
            return
        self._adopt(node)
        self._items[index] = node
        old._parent = None

    def __delitem__(self, index: int) -> None:
        self.pop(index)

    def __repr__(self) -> str:
        return f"Array({self._items!r})"

    def append(self, node: Node) -> None:
        self._adopt(node)
        self._items.append(node)

    def insert(self, index: int, node: Node) -> None:
        if not -len(self._items) <= index <= len(self._items):
            raise IndexError("array insert index out of range")
        self._adopt(node)
        self._items.insert(index, node)

    def remove(self, node: Node) -> None:
        self.pop(self.index(node))

    def pop(self, index: int = -1) -> Node:
        node = self._items.pop(index)
        node._parent = None
        return node

    def index(self, node: Node) -> int:
        """Position of this exact node in the array."""
        for position, item in enumerate(self._items):
            if item is node:
                return position
        raise ValueError("node is not an item of this array")

    def _release(self, node: Node) -> None:
        self.remove(node)

    def _copy_children(self) -> None:
        originals = self._items
        self._items = []
        for node in originals:
            self.append(node.copy())


class Dictionary(_Container):
    """A mapping of string keys to nodes, keeping insertion order."""

    type = PlistType.DICT

    def __init__(self, items: Mapping[str, Node] | Iterable[tuple[str, Node]] | None = None) -> None:
        super().__init__()
        self._items: dict[str, Node] = {}
        if items is not None:
            pairs = items.items() if isinstance(items, Mapping) else items
            for key, node in pairs:
                self.set(key, node)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __getitem__(self, key: str) -> Node:
        return self._items[key]

    def __setitem__(self, key: str, node: Node) -> None:
        self.set(key, node)

    def __delitem__(self, key: str) -> None:
        self.remove(key)

    def __repr__(self) -> str:
        return f"Dictionary({self._items!r})"

    def set(self, key: str, node: Node) -> None:
        """Store node under key, replacing and releasing any previous value."""
        if not isinstance(key, str):
            raise TypeError(f"dictionary keys must be str, not {type(key).__name__}")
        existing = self._items.get(key)
        if existing is node:
            return
        self._adopt(node)
        self._items[key] = node
        if existing is not None:
            existing._parent = None

    def get(self, key: str, default: Node | None = None) -> Node | None:
        return self._items.get(key, default)

    def remove(self, key: str) -> Node:
        node = self._items.pop(key)
        node._parent = None
        return node

    def keys(self) -> list[str]:
        return list(self._items)

    def items(self) -> list[tuple[str, Node]]:
        return list(self._items.items())

    def key_of(self, node: Node) -> str:
        """The key under which this exact node is stored."""
        for key, item in self._items.items():
            if item is node:
                return key
        raise ValueError("node is not a value of this dictionary")

    def merge(self, other: "Dictionary") -> None:
        """Copy every entry of other into this dictionary, overwriting existing keys."""
        if not isinstance(other, Dictionary):
            raise TypeError("only a Dictionary can be merged into a Dictionary")
        for key, node in other.items():
            self.set(key, node.copy())

    def _release(self, node: Node) -> None:
        self.remove(self.key_of(node))

    def _copy_children(self) -> None:
        originals = self._items
        self._items = {}
        for key, node in originals.items():
            self.set(key, node.copy())