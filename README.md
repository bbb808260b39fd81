# pyplistkit

A small pure-Python library for property lists. It gives you a tree of typed
nodes that you can build and edit, and it reads and writes the XML plist
format. It has no dependencies outside the standard library.

## Installation

```
pip install pyplistkit
```

## Building a plist

```python
from pyplistkit.nodes import Array, Boolean, Dictionary, Integer, String

root = Dictionary()
root.set("Name", String("example"))
root.set("Count", Integer(3))
root.set("Enabled", Boolean(True))

items = Array()
items.append(String("first"))
items.append(String("second"))
root.set("Items", items)

print(root.keys())   # ['Name', 'Count', 'Enabled', 'Items']
```

The node classes in `pyplistkit.nodes` are `Boolean`, `Integer`, `Real`,
`String`, `Key`, `Data`, `Date`, `Uid`, `Null`, `Array` and `Dictionary`.
Each has a `type` from the `PlistType` enum.

Nodes know their `parent`. A node can belong to one container at a time;
adding it to a second one, or inside itself, raises `ValueError`. Use
`copy()` for a deep, detached copy and `detach()` to take a node out of its
container.

- `Array` supports `len()`, iteration, indexing, `append`, `insert`,
  `remove`, `pop` and `index` (which looks for that exact node).
- `Dictionary` keeps insertion order and supports `set`, `get`, `remove`,
  `keys`, `items`, `key_of` and `merge` (which copies the other
  dictionary's entries in, overwriting existing keys), as well as `[]`,
  `in` and `del`.
- `Integer` holds any value in the signed or unsigned 64-bit range;
  `is_negative()`, `signed_value()` and `unsigned_value()` read it either
  way.
- `Date` values are seconds since 1 January 2001 UTC;
  `Date.to_datetime()` and `Date.from_datetime()` convert to and from
  `datetime` (naive datetimes are taken as UTC).

## Writing and reading XML

```python
from pyplistkit.xml_reader import from_xml
from pyplistkit.xml_writer import to_xml

text = to_xml(root)
again = from_xml(text)
```

`to_xml` returns the whole document, with the XML declaration, DOCTYPE and
`<plist>` element. Strings are escaped, data is base64 in wrapped lines, and
a `Uid` is written as a `CF$UID` dictionary. `estimate_size` gives a
size estimate for the output and `format_real` shows how a real value is
written.

`from_xml` accepts `str` or UTF-8 `bytes`. It understands comments, CDATA
sections, entity and numeric character references, and turns a top-level
one-entry `CF$UID` dictionary back into a `Uid`. It returns `None` when the
document holds no value.

Errors:

- writing a `Null` node raises `PlistFormatError`;
- malformed input raises `PlistParseError`;
- both are subclasses of `PlistError`;
- empty input raises `ValueError`.

The lower-level scanner used by the reader is in `pyplistkit.xml_text`
(`Scanner`, `TextPart`, `unescape_entities`, `join_text_parts`).

## Helpers

`pyplistkit.tree`:

- `access_path(node, *steps)` follows array indices and dictionary keys and
  returns `None` for a missing step;
- `sort_plist(node)` sorts every dictionary by key, in place;
- `dict_get_bool`, `dict_get_int` and `dict_get_uint` read values leniently
  from booleans, integers, numeric strings or small data blobs;
- the `dict_copy_item`, `dict_copy_bool`, `dict_copy_int`,
  `dict_copy_uint`, `dict_copy_data` and `dict_copy_string` functions copy
  entries between dictionaries. They raise `KeyError` for a missing entry,
  and the data and string variants raise `TypeError` for an entry of another
  kind;
- `is_binary(data)` checks for the binary plist magic `bplist00`.

`pyplistkit.compare` holds value comparisons: `values_equal`,
`int_compare`, `uint_compare`, `uid_compare`, `real_compare`,
`date_compare`, `string_compare`, `string_compare_with_size`,
`string_contains`, `key_compare`, `key_compare_with_size`, `key_contains`,
`data_compare`, `data_compare_with_size` and `data_contains`.

## What it does not do

XML is the only format the package reads and writes. The `PlistFormat` enum
names the binary, JSON, OpenStep and print formats, but there is no reader
or writer for them; `is_binary` only detects binary data. The package has no
command-line tool.