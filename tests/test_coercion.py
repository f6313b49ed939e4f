"""Tests for value coercion helpers."""

from __future__ import annotations

import datetime
import math
import re

import pytest

from cqrs_ddd_query_schema.coercion import (
    coerce,
    deep_merge,
    infer_type,
    is_nan,
    is_nil,
    to_boolean,
    to_date,
    to_number,
    to_pattern,
)

UTC = datetime.timezone.utc


def test_is_nil() -> None:
    assert is_nil(None)
    assert is_nil(math.nan)
    assert not is_nil(0)
    assert not is_nil("")
    assert not is_nil([])


class TestToNumber:
    def test_integer_literal_stays_int(self) -> None:
        result = to_number("23")
        assert result == 23
        assert isinstance(result, int)

    def test_decimal_becomes_float(self) -> None:
        assert to_number(" 2.5 ") == 2.5

    def test_empty_string_is_zero(self) -> None:
        assert to_number("") == 0

    def test_unparseable_is_nan(self) -> None:
        assert is_nan(to_number("abc"))
        assert is_nan(to_number(object()))

    def test_numbers_pass_through(self) -> None:
        assert to_number(7) == 7
        assert to_number(True) == 1


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1", True),
        ("true", True),
        ("yes", True),
        ("false", False),
        ("FALSE", False),
        ("0", False),
        ("", False),
        (None, False),
        (0, False),
        (1, True),
    ],
)
def test_to_boolean(raw: object, expected: bool) -> None:
    assert to_boolean(raw) is expected


class TestToDate:
    def test_iso_string(self) -> None:
        assert to_date("2016-04-24T10:00:00Z") == datetime.datetime(
            2016, 4, 24, 10, tzinfo=UTC
        )

    def test_numeric_string_is_timestamp(self) -> None:
        expected = datetime.datetime.fromtimestamp(1461110400, tz=UTC)
        assert to_date("1461110400") == expected

    def test_number_is_timestamp(self) -> None:
        assert to_date(0) == datetime.datetime(1970, 1, 1, tzinfo=UTC)

    def test_free_form_string_falls_back_to_dateutil(self) -> None:
        assert to_date("April 24, 2016") == datetime.datetime(2016, 4, 24, tzinfo=UTC)

    def test_naive_datetime_is_utc(self) -> None:
        result = to_date(datetime.datetime(2020, 1, 1, 12))
        assert result == datetime.datetime(2020, 1, 1, 12, tzinfo=UTC)
        assert result.tzinfo is not None

    def test_date_is_midnight_utc(self) -> None:
        assert to_date(datetime.date(2020, 1, 1)) == datetime.datetime(
            2020, 1, 1, tzinfo=UTC
        )

    def test_garbage_is_nan(self) -> None:
        assert is_nan(to_date("garbage"))
        assert is_nan(to_date(""))
        assert is_nan(to_date(True))


class TestToPattern:
    def test_compiles_case_insensitive(self) -> None:
        pattern = to_pattern("abc")
        assert isinstance(pattern, re.Pattern)
        assert pattern.flags & re.IGNORECASE
        assert pattern.search("xABCx")

    def test_is_idempotent(self) -> None:
        pattern = re.compile("abc")
        assert to_pattern(pattern) is pattern

    def test_invalid_expression_is_nan(self) -> None:
        assert is_nan(to_pattern("("))


class TestCoerce:
    def test_float_type_always_produces_float(self) -> None:
        result = coerce("5", float)
        assert result == 5.0
        assert isinstance(result, float)

    def test_int_type(self) -> None:
        assert coerce("42", int) == 42

    def test_str_type(self) -> None:
        assert coerce(42, str) == "42"

    def test_coercion_is_idempotent(self) -> None:
        once = coerce("2016-04-24T00:00:00Z", datetime.datetime)
        assert coerce(once, datetime.datetime) == once
        assert coerce(coerce("1", bool), bool) is True

    def test_custom_callable(self) -> None:
        assert coerce("a,b", lambda v: v.split(",")) == ["a", "b"]


def test_infer_type() -> None:
    assert infer_type(True) is bool
    assert infer_type(3) is int
    assert infer_type(1.5) is float
    assert infer_type(datetime.date(2020, 1, 1)) is datetime.datetime
    assert infer_type(re.compile("x")) is re.Pattern
    assert infer_type("x") is str


def test_deep_merge_merges_nested_dicts() -> None:
    target = {"a": {"b": 1}, "c": 1}
    deep_merge(target, {"a": {"d": 2}, "c": 3})
    assert target == {"a": {"b": 1, "d": 2}, "c": 3}
