"""Tests for flowlight.core.strings — value-to-string normalisation."""

from enum import Enum

from flowlight.core.strings import format_number, has_custom_str, stringify


class Color(str, Enum):
    RED = "red"


class Plain:
    pass


class Named:
    def __str__(self) -> str:
        return "named"


class TestFormatNumber:
    def test_integral_float(self):
        assert format_number(10000.0) == "10000"

    def test_fractional_float(self):
        assert format_number(1.5) == "1.5"

    def test_int(self):
        assert format_number(-3) == "-3"


class TestStringify:
    """Every stored message and lookup key goes through stringify."""

    def test_str_unchanged(self):
        assert stringify("already") == "already"

    def test_bools(self):
        assert stringify(True) == "1"
        assert stringify(False) == "0"

    def test_none_is_empty(self):
        assert stringify(None) == ""

    def test_numbers(self):
        assert stringify(42) == "42"
        assert stringify(2.0) == "2"

    def test_structures_are_compact_json(self):
        assert stringify({"a": [1, 2]}) == '{"a":[1,2]}'
        assert stringify(("x", 1)) == '["x",1]'

    def test_unicode_is_not_escaped(self):
        assert stringify(["é"]) == '["é"]'

    def test_custom_str(self):
        assert stringify(Named()) == "named"

    def test_exception_uses_message(self):
        assert stringify(ValueError("bad")) == "bad"

    def test_str_enum_is_a_string(self):
        assert stringify(Color.RED) == "red"

    def test_plain_object_falls_back_to_type_name(self):
        assert stringify(Plain()) == "Plain"


class TestHasCustomStr:
    def test_detects_override(self):
        assert has_custom_str(Named()) is True
        assert has_custom_str(Plain()) is False
