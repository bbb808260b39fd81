import pytest

from pyplistkit.nodes import Array, Boolean, Data, Dictionary, Integer, Real, String
from pyplistkit.tree import (
    access_path,
    dict_copy_bool,
    dict_copy_data,
    dict_copy_int,
    dict_copy_item,
    dict_copy_string,
    dict_copy_uint,
    dict_get_bool,
    dict_get_int,
    dict_get_uint,
    is_binary,
    sort_plist,
)


def make_tree():
    inner = Dictionary({"name": String("leaf"), "count": Integer(3)})
    items = Array([String("a"), inner])
    return Dictionary({"items": items, "flag": Boolean(True)}), inner


def test_access_path_reaches_nested_node():
    root, inner = make_tree()
    assert access_path(root, "items", 1) is inner
    assert access_path(root, "items", 1, "name").value == "leaf"


def test_access_path_without_steps_returns_node():
    root, _ = make_tree()
    assert access_path(root) is root


def test_access_path_missing_items():
    root, _ = make_tree()
    assert access_path(root, "missing") is None
    assert access_path(root, "items", 5) is None
    assert access_path(root, "items", -1) is None
    assert access_path(root, "items", "x") is None
    assert access_path(root, "flag", "deeper") is None


def test_sort_plist_orders_keys_recursively():
    nested = Dictionary({"zeta": Integer(1), "alpha": Integer(2)})
    root = Dictionary({"b": Array([nested]), "a": String("x"), "c": Real(1.5)})
    sort_plist(root)
    assert root.keys() == sorted(root.keys())
    assert nested.keys() == ["alpha", "zeta"]
    assert nested.parent is root["b"]
    assert root["b"][0] is nested


def test_sort_plist_keeps_values():
    value = String("kept")
    root = Dictionary({"y": value, "x": Integer(1)})
    sort_plist(root)
    assert root["y"] is value
    assert value.parent is root


def test_dict_get_bool_variants():
    d = Dictionary(
        {
            "b": Boolean(True),
            "s_true": String("true"),
            "s_false": String("false"),
            "i_pos": Integer(7),
            "i_zero": Integer(0),
            "i_neg": Integer(-4),
            "d_one": Data(b"\x01"),
            "d_zero": Data(b"\x00"),
            "d_long": Data(b"\x01\x01"),
            "r": Real(1.0),
        }
    )
    assert dict_get_bool(d, "b") is True
    assert dict_get_bool(d, "s_true") is True
    assert dict_get_bool(d, "s_false") is False
    assert dict_get_bool(d, "i_pos") is True
    assert dict_get_bool(d, "i_zero") is False
    assert dict_get_bool(d, "i_neg") is False
    assert dict_get_bool(d, "d_one") is True
    assert dict_get_bool(d, "d_zero") is False
    assert dict_get_bool(d, "d_long") is False
    assert dict_get_bool(d, "r") is False
    assert dict_get_bool(d, "missing") is False


def test_dict_get_int_from_integer_and_string():
    d = Dictionary({"i": Integer(-42), "dec": String("123"), "hex": String("0x10")})
    assert dict_get_int(d, "i") == -42
    assert dict_get_int(d, "dec") == 123
    assert dict_get_int(d, "hex") == 16
    assert dict_get_int(d, "missing") == 0


def test_dict_get_int_from_data_is_signed_little_endian():
    raw = (-2).to_bytes(4, "little", signed=True)
    d = Dictionary({"d": Data(raw), "odd": Data(b"\x01\x02\x03")})
    assert dict_get_int(d, "d") == -2
    assert dict_get_int(d, "odd") == 0


def test_dict_get_uint_from_data_and_integer():
    raw = (513).to_bytes(2, "little")
    d = Dictionary({"d": Data(raw), "big": Integer(2**64 - 1), "neg": Integer(-1)})
    assert dict_get_uint(d, "d") == 513
    assert dict_get_uint(d, "big") == 2**64 - 1
    assert dict_get_uint(d, "neg") == 2**64 - 1


def test_signed_and_unsigned_readings_agree_modulo_2_64():
    d = Dictionary({"v": Integer(2**63 + 5)})
    assert dict_get_int(d, "v") % 2**64 == dict_get_uint(d, "v")


def test_dict_get_int_string_overflow_clamps():
    d = Dictionary({"huge": String("99999999999999999999999"), "tiny": String("-99999999999999999999999")})
    assert dict_get_int(d, "huge") == 2**63 - 1
    assert dict_get_int(d, "tiny") == -(2**63)
    assert dict_get_uint(d, "huge") == 2**64 - 1


def test_dict_copy_item_copies_node():
    source = Dictionary({"k": String("v")})
    target = Dictionary()
    dict_copy_item(target, source, "k")
    assert target["k"].value == "v"
    assert target["k"] is not source["k"]
    assert source["k"].parent is source


def test_dict_copy_item_alt_key():
    source = Dictionary({"other": Integer(9)})
    target = Dictionary()
    dict_copy_item(target, source, "k", "other")
    assert target.keys() == ["k"]
    assert target["k"].value == 9


def test_dict_copy_item_missing_raises():
    with pytest.raises(KeyError):
        dict_copy_item(Dictionary(), Dictionary(), "absent")


def test_dict_copy_bool_converts():
    source = Dictionary({"s": String("true")})
    target = Dictionary()
    dict_copy_bool(target, source, "flag", "s")
    assert isinstance(target["flag"], Boolean)
    assert target["flag"].value is True


def test_dict_copy_int_and_uint_convert():
    source = Dictionary({"s": String("-5"), "d": Data(b"\xff")})
    target = Dictionary()
    dict_copy_int(target, source, "s")
    dict_copy_uint(target, source, "d")
    assert isinstance(target["s"], Integer)
    assert target["s"].value == -5
    assert target["d"].value == 255


def test_dict_copy_int_missing_raises():
    with pytest.raises(KeyError):
        dict_copy_int(Dictionary(), Dictionary({"a": Integer(1)}), "b")


def test_dict_copy_data_and_string_check_type():
    source = Dictionary({"blob": Data(b"abc"), "text": String("hi")})
    target = Dictionary()
    dict_copy_data(target, source, "blob")
    dict_copy_string(target, source, "text")
    assert target["blob"].value == b"abc"
    assert target["text"].value == "hi"
    with pytest.raises(TypeError):
        dict_copy_data(target, source, "text")
    with pytest.raises(TypeError):
        dict_copy_string(target, source, "blob")


def test_is_binary():
    assert is_binary(b"bplist00" + b"\x00" * 32) is True
    assert is_binary(b"<?xml version=\"1.0\"?>") is False
    assert is_binary(b"bplist") is False
    assert is_binary(b"") is False
    assert is_binary("bplist00rest") is True