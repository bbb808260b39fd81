import math
from datetime import datetime, timezone

import pytest

from pyplistkit.compare import values_equal
from pyplistkit.nodes import (
    MAC_EPOCH,
    UINT64_MAX,
    Array,
    Boolean,
    Data,
    Date,
    Dictionary,
    Integer,
    PlistParseError,
    Real,
    String,
    Uid,
)
from pyplistkit.xml_reader import from_xml, parse_date
from pyplistkit.xml_writer import to_xml


def wrap(body: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" '
        '"http://www.apple.com/DTDs/PropertyList-1.0.dtd">\n'
        f'<plist version="1.0">\n{body}\n</plist>\n'
    )


def test_parse_date_reference_epoch():
    assert parse_date("2001-01-01T00:00:00Z") == MAC_EPOCH


def test_parse_date_matches_datetime():
    expected = datetime(2020, 5, 17, 12, 34, 56, tzinfo=timezone.utc).timestamp()
    assert parse_date("2020-05-17T12:34:56Z") == int(expected)


def test_parse_date_unix_epoch():
    assert parse_date("1970-01-01T00:00:00Z") == 0


def test_round_trip_all_scalar_types():
    original = Dictionary()
    original["flag"] = Boolean(True)
    original["off"] = Boolean(False)
    original["count"] = Integer(-42)
    original["big"] = Integer(UINT64_MAX)
    original["ratio"] = Real(0.1)
    original["name"] = String("a <b> & c")
    original["blob"] = Data(bytes(range(200)))
    original["when"] = Date(12345.0)
    original["list"] = Array([Integer(1), String("two"), Array(), Dictionary()])
    parsed = from_xml(to_xml(original))
    assert values_equal(parsed, original)
    assert parsed.keys() == original.keys()


def test_bytes_input_round_trip():
    original = Array([String("\u00e9t\u00e9"), Integer(7)])
    parsed = from_xml(to_xml(original).encode("utf-8"))
    assert values_equal(parsed, original)


def test_integer_variants():
    parsed = from_xml(wrap(
        "<array><integer>-5</integer><integer>18446744073709551615</integer>"
        "<integer>0x10</integer><integer/></array>"
    ))
    assert parsed[0].value == -5
    assert parsed[1].value == UINT64_MAX
    assert parsed[1].is_unsigned
    assert parsed[2].value == int("10", 16)
    assert parsed[3].value == 0


def test_real_special_values():
    parsed = from_xml(wrap(
        "<array><real>nan</real><real>+infinity</real><real>-infinity</real>"
        "<real>1.5</real></array>"
    ))
    assert math.isnan(parsed[0].value)
    assert parsed[1].value == math.inf
    assert parsed[2].value == -math.inf
    assert parsed[3].value == 1.5


def test_string_entities_and_cdata():
    parsed = from_xml(wrap(
        "<array><string>a &lt;b&gt; &amp; &#x41;&#66;</string>"
        "<string><![CDATA[<x>&amp;]]></string><string/></array>"
    ))
    assert parsed[0].value == "a <b> & AB"
    assert parsed[1].value == "<x>&amp;"
    assert parsed[2].value == ""


def test_comment_inside_string_is_dropped():
    parsed = from_xml(wrap("<string>ab<!-- note -->cd</string>"))
    assert isinstance(parsed, String)
    assert parsed.value == "abcd"


def test_key_outside_dictionary_becomes_string():
    parsed = from_xml(wrap("<array><key>k</key></array>"))
    assert isinstance(parsed[0], String)
    assert parsed[0].value == "k"


def test_data_base64():
    parsed = from_xml(wrap("<data>\n\tSGVsbG8=\n</data>"))
    assert isinstance(parsed, Data)
    assert parsed.value == b"Hello"


def test_date_value():
    parsed = from_xml(wrap("<date>2001-01-01T00:00:00Z</date>"))
    assert isinstance(parsed, Date)
    assert parsed.value == 0.0


def test_booleans():
    parsed = from_xml(wrap("<array><true/><false/><true></true></array>"))
    assert [node.value for node in parsed] == [True, False, True]


def test_root_uid_dictionary_becomes_uid():
    parsed = from_xml(to_xml(Uid(9)))
    assert isinstance(parsed, Uid)
    assert parsed.value == 9


def test_nested_uid_dictionary_stays_dictionary():
    parsed = from_xml(to_xml(Array([Uid(3)])))
    assert isinstance(parsed[0], Dictionary)
    assert parsed[0]["CF$UID"].value == 3


def test_document_without_plist_wrapper():
    parsed = from_xml("<array><integer>1</integer></array>")
    assert isinstance(parsed, Array)
    assert parsed[0].value == 1


def test_document_without_value_returns_none():
    assert from_xml('<?xml version="1.0"?>\n') is None


def test_second_plist_is_ignored():
    parsed = from_xml(wrap("<string>one</string>") + wrap("<string>two</string>"))
    assert parsed.value == "one"


def test_duplicate_key_replaces_value():
    parsed = from_xml(wrap(
        "<dict><key>a</key><integer>1</integer><key>a</key><integer>2</integer></dict>"
    ))
    assert len(parsed) == 1
    assert parsed["a"].value == 2


def test_empty_input_rejected():
    with pytest.raises(ValueError):
        from_xml("")


@pytest.mark.parametrize(
    "document",
    [
        wrap("<array><string>x</string></dict>"),
        wrap("<dict><string>x</string></dict>"),
        wrap("<unknown/>"),
        "<plist></plist>",
        "<plist/>",
        "<array><integer>1</integer>",
        wrap("<string>&bogus;</string>"),
        wrap("<string>a <b>x</b></string>"),
        "just text",
        wrap("<string>unterminated"),
    ],
)
def test_malformed_documents(document):
    with pytest.raises(PlistParseError):
        from_xml(document)


def test_invalid_utf8_bytes():
    with pytest.raises(PlistParseError):
        from_xml(b"<string>\xff</string>")