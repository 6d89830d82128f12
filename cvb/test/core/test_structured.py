"""Tests for cvb.core.structured module."""

from cvb.core.structured import as_str_dict, get_raw_str, get_str, get_str_list, is_str_dict


def test_is_str_dict() -> None:
    assert is_str_dict({"a": 1})
    assert not is_str_dict({1: "a"})
    assert not is_str_dict(["a"])
    assert as_str_dict("nope") is None


def test_get_str_strips_and_drops_empty() -> None:
    table: dict[str, object] = {"a": "  x ", "b": "   ", "c": 3}
    assert get_str(table, "a") == "x"
    assert get_str(table, "b") is None
    assert get_str(table, "c") is None
    assert get_str(table, "missing") is None


def test_get_raw_str_keeps_empty() -> None:
    assert get_raw_str({"tag_prefix": ""}, "tag_prefix") == ""
    assert get_raw_str({"tag_prefix": 1}, "tag_prefix") is None


def test_get_str_list() -> None:
    assert get_str_list({"d": ["target", "vendor"]}, "d") == ("target", "vendor")
    assert get_str_list({"d": ["target", 1]}, "d") is None
    assert get_str_list({"d": "target"}, "d") is None
