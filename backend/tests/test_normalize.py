"""
Unit tests for utils/normalize.py

Tests all input coercion helpers to ensure:
- Query-string text and JSON-typed values both coerce
- Proper None/empty string handling
- MalformedParameter carries the field name
"""

import pytest

from utils.normalize import (
    MalformedParameter,
    is_blank,
    looks_like_json,
    parse_json,
    to_bool,
    to_int,
    to_tokens,
    validation_error_response,
)


class TestToInt:
    """Tests for to_int()"""

    def test_valid_int_string(self):
        assert to_int("123") == 123
        assert to_int("-456") == -456
        assert to_int(" 7 ") == 7

    def test_json_int_passthrough(self):
        assert to_int(5) == 5
        assert to_int(5.0) == 5

    def test_none_and_empty_return_default(self):
        assert to_int(None) is None
        assert to_int("") is None
        assert to_int("", default=50) == 50

    def test_float_string_raises(self):
        with pytest.raises(MalformedParameter):
            to_int("3.14")

    def test_bool_raises(self):
        with pytest.raises(MalformedParameter):
            to_int(True, field="skip")

    def test_field_in_error(self):
        with pytest.raises(MalformedParameter) as exc:
            to_int("bad", field="limit")
        assert exc.value.field == "limit"
        assert exc.value.received_value == "bad"
        assert "Expected int" in str(exc.value)


class TestToBool:
    """Tests for to_bool()"""

    def test_true_values(self):
        for value in ("true", "True", "1", "yes", "on", True):
            assert to_bool(value) is True

    def test_false_values(self):
        for value in ("false", "FALSE", "0", "no", "off", False):
            assert to_bool(value) is False

    def test_empty_returns_default(self):
        assert to_bool(None) is False
        assert to_bool("", default=True) is True

    def test_invalid_value_raises(self):
        with pytest.raises(MalformedParameter) as exc:
            to_bool("maybe", field="totalCount")
        assert exc.value.field == "totalCount"


class TestTokens:

    def test_whitespace_and_commas(self):
        assert to_tokens("name -_id") == ["name", "-_id"]
        assert to_tokens("name, age,,  -x") == ["name", "age", "-x"]
        assert to_tokens("   ") == []

    def test_looks_like_json(self):
        assert looks_like_json(' {"a": 1}')
        assert looks_like_json('["a"]')
        assert not looks_like_json('name -_id')

    def test_parse_json_error_names_field(self):
        with pytest.raises(MalformedParameter) as exc:
            parse_json("{not json", field="query")
        assert exc.value.field == "query"

    def test_parse_json_too_deep_is_malformed(self):
        deep = "[" * 100000 + "]" * 100000
        with pytest.raises(MalformedParameter) as exc:
            parse_json(deep, field="sort")
        assert exc.value.field == "sort"
        assert "nested too deeply" in str(exc.value)

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank("  ")
        assert not is_blank(0)
        assert not is_blank({})


def test_validation_error_response():
    error = MalformedParameter("Expected int", field="limit", received_value="x")
    body, status = validation_error_response(error)
    assert status == 400
    assert body == {
        "error": "Expected int",
        "type": "validation_error",
        "field": "limit",
        "received_value": "x",
    }
