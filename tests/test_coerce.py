"""Tests for fail-open value coercions."""

from datetime import date

import pytest

from fieldflow.data.coerce import (
    parse_date,
    to_choice,
    to_flag,
    to_float,
    to_int,
    to_non_negative_float,
    to_text,
    to_text_list,
    to_tristate,
)


class TestToFloat:
    """Tests for to_float()."""

    @pytest.mark.parametrize("value,expected", [
        ("12.5", 12.5),
        (" 7 ", 7.0),
        (3, 3.0),
        (True, 1.0),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        ("nan", 0.0),
        ("inf", 0.0),
        ([1, 2], 0.0),
        ({"a": 1}, 0.0),
    ])
    def test_values(self, value, expected):
        assert to_float(value) == expected

    def test_custom_default(self):
        assert to_float("bad", default=-1.0) == -1.0


class TestToInt:
    """Tests for to_int()."""

    @pytest.mark.parametrize("value,expected", [
        ("3", 3),
        ("2.0", 2),
        ("2.9", 2),
        (4.0, 4),
        ("", 0),
        ("x", 0),
        (None, 0),
    ])
    def test_values(self, value, expected):
        assert to_int(value) == expected

    def test_default(self):
        assert to_int("x", default=1) == 1


class TestToNonNegativeFloat:
    """Tests for orifice-style coercion."""

    def test_negative_is_default(self):
        assert to_non_negative_float("-3") == 0.0

    def test_positive_kept(self):
        assert to_non_negative_float("0.875") == 0.875

    def test_garbage_is_default(self):
        assert to_non_negative_float("abc") == 0.0


class TestToTristate:
    """Tests for to_tristate()."""

    @pytest.mark.parametrize("value,expected", [
        (True, True),
        (False, False),
        (None, None),
        ("yes", True),
        ("Y", True),
        ("true", True),
        ("no", False),
        ("FALSE", False),
        ("0", False),
        (1, True),
        (0, False),
        ("", None),
        ("unknown", None),
    ])
    def test_values(self, value, expected):
        assert to_tristate(value) is expected


class TestToFlag:
    """Tests for to_flag()."""

    @pytest.mark.parametrize("value,expected", [
        (True, "Y"),
        (False, "N"),
        (None, "N"),
        ("", "N"),
        ("no", "N"),
        ("N", "N"),
        ("false", "N"),
        ("0", "N"),
        ("yes", "Y"),
        ("on", "Y"),
        ("anything", "Y"),
        (1, "Y"),
        (0, "N"),
    ])
    def test_values(self, value, expected):
        assert to_flag(value) == expected


class TestToChoice:
    """Tests for to_choice()."""

    def test_canonical_spelling(self):
        assert to_choice("annulus", ("Tubing", "Annulus"), "Tubing") == "Annulus"

    def test_unknown_gives_default(self):
        assert to_choice("casing", ("Tubing", "Annulus"), "Tubing") == "Tubing"

    def test_none_gives_default(self):
        assert to_choice(None, ("", "internal"), "") == ""


class TestToTextList:
    """Tests for to_text_list()."""

    def test_list(self):
        assert to_text_list(["a", "b"]) == ["a", "b"]

    def test_single_string(self):
        assert to_text_list("one") == ["one"]

    def test_empty_and_none(self):
        assert to_text_list("") == []
        assert to_text_list(None) == []

    def test_drops_none_items(self):
        assert to_text_list(["a", None, 3]) == ["a", "3"]

    def test_non_iterable(self):
        assert to_text_list(5) == ["5"]


class TestToText:
    def test_trims(self):
        assert to_text("  Dixon ") == "Dixon"

    def test_none(self):
        assert to_text(None) == ""


class TestParseDate:
    """Tests for parse_date()."""

    def test_iso_date(self):
        assert parse_date("2024-06-15") == date(2024, 6, 15)

    def test_utc_timestamp(self):
        assert parse_date("2024-06-15T23:30:00.000Z") == date(2024, 6, 15)

    def test_offset_timestamp_uses_utc_day(self):
        assert parse_date("2024-06-15T22:00:00-05:00") == date(2024, 6, 16)

    @pytest.mark.parametrize("value", ["", None, "not a date", "2024-13-45"])
    def test_unparseable(self, value):
        assert parse_date(value) is None
