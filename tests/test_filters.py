"""Tests for filter functions."""

from __future__ import annotations

from datetime import datetime

import pytest
from kiroku.exceptions import FilterError
from kiroku.filters import (
    FILTERS,
    capitalize_filter,
    date_filter,
    default_filter,
    first_filter,
    join_filter,
    last_filter,
    length_filter,
    lower_filter,
    nl2br_filter,
    replace_filter,
    title_filter,
    trim_filter,
    truncate_filter,
    upper_filter,
)

# 2024-01-15 10:00:00 UTC
TIMESTAMP = 1705312800000


class TestDateFilter:
    """Tests for the date filter."""

    def test_timestamp_with_format(self) -> None:
        """Test epoch milliseconds format as a calendar date."""
        assert date_filter(TIMESTAMP, "%Y-%m-%d") == "2024-01-15"

    def test_timestamp_uses_local_time(self) -> None:
        """Test time directives follow the local clock."""
        local = datetime.fromtimestamp(TIMESTAMP / 1000)
        assert date_filter(TIMESTAMP, "%H:%M:%S") == local.strftime("%H:%M:%S")

    def test_twelve_hour_clock(self) -> None:
        """Test %I and %p."""
        assert date_filter("2024-01-15T15:04:05", "%I:%M %p") == "03:04 PM"
        assert date_filter("2024-01-15T00:30:00", "%I:%M %p") == "12:30 AM"

    def test_date_only_string(self) -> None:
        """Test a date-only string keeps its calendar day."""
        assert date_filter("2024-01-15", "%Y-%m-%d %H:%M") == "2024-01-15 00:00"

    def test_named_parts(self) -> None:
        """Test weekday, month and day-of-year directives."""
        assert date_filter("2024-01-15", "%a %A %b %B %w %j") == (
            "Mon Monday Jan January 1 015"
        )

    @pytest.mark.parametrize(
        "value,fmt,expected",
        [
            ("2023-01-01", "%W", "52"),
            ("2023-01-01", "%U", "01"),
            ("2024-01-01", "%U", "01"),
            ("2024-01-01", "%W", "01"),
            ("2024-01-15", "%W", "03"),
            ("2021-01-01", "%W", "53"),
            ("2024-12-30", "%W", "01"),
        ],
    )
    def test_week_numbers_near_year_boundary(
        self, value: str, fmt: str, expected: str
    ) -> None:
        """Test week numbers count from the Thursday of the week."""
        assert date_filter(value, fmt) == expected

    def test_human_readable_string(self) -> None:
        """Test non-ISO strings are parsed too."""
        assert date_filter("January 15, 2024", "%d/%m/%Y") == "15/01/2024"

    def test_escaped_percent(self) -> None:
        """Test %% is a literal percent and unknown directives stay as-is."""
        assert date_filter("2024-01-15", "100%% on %Y %Q") == "100% on 2024 %Q"

    def test_default_format_is_not_empty(self) -> None:
        """Test the locale default rendering without a format."""
        assert date_filter(TIMESTAMP) != ""

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_missing_or_invalid_input(self, value: object) -> None:
        """Test absent or unparseable input renders empty."""
        assert date_filter(value, "%Y") == ""

    def test_non_date_value_passes_through(self) -> None:
        """Test values that are neither numbers nor strings are unchanged."""
        assert date_filter(True, "%Y") is True

    def test_bad_format_argument(self) -> None:
        """Test a non-string format is an error."""
        with pytest.raises(FilterError, match="format must be a string"):
            date_filter(TIMESTAMP, 5)


class TestDefaultFilter:
    """Tests for the default filter."""

    def test_present_value(self) -> None:
        """Test a present value is kept."""
        assert default_filter("Gatsby", "Unknown") == "Gatsby"

    @pytest.mark.parametrize("value", [None, ""])
    def test_absent_value(self, value: object) -> None:
        """Test None and the empty string take the fallback."""
        assert default_filter(value, "Unknown") == "Unknown"

    def test_falsy_values_are_present(self) -> None:
        """Test zero and false are not absent."""
        assert default_filter(0, "x") == 0
        assert default_filter(False, "x") is False

    def test_fallback_defaults_to_empty(self) -> None:
        """Test the fallback argument is optional."""
        assert default_filter(None) == ""


class TestStringFilters:
    """Tests for case and whitespace filters."""

    def test_case_filters(self) -> None:
        """Test case conversion filters."""
        assert upper_filter("hello") == "HELLO"
        assert lower_filter("HELLO") == "hello"
        assert capitalize_filter("hELLO wORLD") == "Hello world"
        assert title_filter("hello big world") == "Hello Big World"

    def test_trim_filter(self) -> None:
        """Test whitespace stripping."""
        assert trim_filter("  spaced \n") == "spaced"

    def test_nl2br_filter(self) -> None:
        """Test newlines gain a br tag."""
        assert nl2br_filter("Line 1\nLine 2\nLine 3") == (
            "Line 1<br>\nLine 2<br>\nLine 3"
        )

    @pytest.mark.parametrize(
        "fn",
        [upper_filter, lower_filter, capitalize_filter, title_filter, trim_filter],
    )
    def test_non_string_input(self, fn) -> None:  # type: ignore[no-untyped-def]
        """Test non-string input renders empty."""
        assert fn(None) == ""
        assert fn(42) == ""


class TestReplaceFilter:
    """Tests for the replace filter."""

    def test_replace_all(self) -> None:
        """Test every occurrence is replaced."""
        assert replace_filter("a.b.c", ".", "-") == "a-b-c"

    def test_search_is_not_a_pattern(self) -> None:
        """Test regex metacharacters are literal."""
        assert replace_filter("1+1 (two)", "(two)", "2") == "1+1 2"

    def test_empty_search(self) -> None:
        """Test an empty search inserts between characters."""
        assert replace_filter("abc", "", "-") == "a-b-c"

    def test_bad_arguments(self) -> None:
        """Test non-string arguments are an error."""
        with pytest.raises(FilterError):
            replace_filter("abc", 1, "x")


class TestTruncateFilter:
    """Tests for the truncate filter."""

    def test_short_string_unchanged(self) -> None:
        """Test strings within the limit are returned as-is."""
        assert truncate_filter("The Great Gatsby", 50) == "The Great Gatsby"
        assert truncate_filter("exact", 5) == "exact"

    def test_word_boundary(self) -> None:
        """Test the default cut backs off to the previous space."""
        assert truncate_filter("THE GREAT GATSBY", 10) == "THE GREAT..."
        assert truncate_filter("In my younger and more vulnerable years", 20) == (
            "In my younger and..."
        )

    def test_killwords(self) -> None:
        """Test killwords cuts at the exact offset."""
        assert truncate_filter("abcdefghij", 5, True) == "abcde..."
        assert truncate_filter("THE GREAT GATSBY", 5, True) == "THE G..."

    def test_single_long_word(self) -> None:
        """Test a word longer than the limit is cut where it must be."""
        assert truncate_filter("abcdefghij", 5) == "abcde..."

    def test_custom_end(self) -> None:
        """Test the end marker can be changed."""
        assert truncate_filter("abcdefghij", 3, True, " [more]") == "abc [more]"

    def test_invalid_length(self) -> None:
        """Test a non-numeric length is an error."""
        with pytest.raises(FilterError, match="non-negative number"):
            truncate_filter("text", "ten")


class TestCollectionFilters:
    """Tests for length, first, last and join."""

    def test_length(self) -> None:
        """Test list, string, mapping and missing lengths."""
        assert length_filter([1, 2, 3]) == 3
        assert length_filter("The Great Gatsby") == 16
        assert length_filter({"a": 1}) == 1
        assert length_filter(None) == 0

    def test_first_and_last(self) -> None:
        """Test end elements of a list."""
        assert first_filter([1, 2, 3]) == 1
        assert last_filter([1, 2, 3]) == 3
        assert first_filter([]) is None
        assert last_filter("abc") is None

    def test_join(self) -> None:
        """Test elements are joined by their text form."""
        assert join_filter(["a", 1, True, None], ", ") == "a, 1, true, "
        assert join_filter("abc", ",") == ""


class TestRegistry:
    """Tests for the filter table."""

    def test_registry_is_read_only(self) -> None:
        """Test the registry cannot be modified."""
        with pytest.raises(TypeError):
            FILTERS["shout"] = upper_filter  # type: ignore[index]

    def test_registered_names(self) -> None:
        """Test every documented filter is registered."""
        assert set(FILTERS) == {
            "date",
            "default",
            "upper",
            "lower",
            "capitalize",
            "title",
            "trim",
            "replace",
            "truncate",
            "length",
            "first",
            "last",
            "join",
            "nl2br",
        }
