"""Built-in filters for Kiroku templates.

Every filter is called as ``fn(value, *args)`` and returns a new value. Filters
are pure: they never modify their input. String filters return ``""`` when the
input is not a non-empty string.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from datetime import date, datetime, timedelta
from types import MappingProxyType
from typing import Any

from dateutil import parser as date_parser

from .exceptions import FilterError
from .values import is_list, is_number, is_truthy, length_of, to_text

logger = logging.getLogger(__name__)

_RE_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_RE_DIRECTIVE = re.compile(r"%(.)", re.DOTALL)
_RE_WORD = re.compile(r"\w\S*")

_WEEKDAY_ABBR = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
_WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)
_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def _parse_date(value: int | float | str) -> datetime | None:
    """Turn epoch milliseconds or a date-like string into a local datetime.

    Date-only strings (``2024-01-15``) are taken as that calendar day with no
    timezone shift. Strings carrying an offset are converted to local time.
    """
    try:
        if is_number(value):
            return datetime.fromtimestamp(value / 1000)

        text = str(value).strip()
        if not text:
            return None
        if _RE_DATE_ONLY.match(text):
            return datetime.combine(date.fromisoformat(text), datetime.min.time())

        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            parsed = date_parser.parse(text)
    except (ValueError, OverflowError, OSError) as e:
        logger.debug("date filter could not parse %r: %s", value, e)
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _week_number(dt: datetime, monday_first: bool) -> int:
    """Week of the year for ``%U`` (Sunday first) and ``%W`` (Monday first).

    The week is counted from the Thursday of the week containing *dt*, so the
    first days of January can belong to the last week of the previous year.
    """
    day = dt.date()
    day_num = (day.weekday() + 1) % 7  # Sunday = 0
    if monday_first:
        day_num = day_num or 7
    anchor = day + timedelta(days=4 - day_num)
    return (anchor - date(anchor.year, 1, 1)).days // 7 + 1


def _format_date(dt: datetime, fmt: str) -> str:
    weekday = (dt.weekday() + 1) % 7  # Sunday = 0

    def replace(match: re.Match[str]) -> str:
        directive = match.group(1)
        if directive == "Y":
            return str(dt.year)
        if directive == "m":
            return f"{dt.month:02d}"
        if directive == "d":
            return f"{dt.day:02d}"
        if directive == "H":
            return f"{dt.hour:02d}"
        if directive == "M":
            return f"{dt.minute:02d}"
        if directive == "S":
            return f"{dt.second:02d}"
        if directive == "I":
            return f"{dt.hour % 12 or 12:02d}"
        if directive == "p":
            return "PM" if dt.hour >= 12 else "AM"
        if directive == "w":
            return str(weekday)
        if directive == "j":
            return f"{dt.timetuple().tm_yday:03d}"
        if directive in ("U", "W"):
            return f"{_week_number(dt, directive == 'W'):02d}"
        if directive == "a":
            return _WEEKDAY_ABBR[weekday]
        if directive == "A":
            return _WEEKDAY_NAMES[weekday]
        if directive == "b":
            return _MONTH_NAMES[dt.month - 1][:3]
        if directive == "B":
            return _MONTH_NAMES[dt.month - 1]
        if directive == "%":
            return "%"
        return match.group(0)

    return _RE_DIRECTIVE.sub(replace, fmt)


def date_filter(value: Any, fmt: Any = None) -> Any:
    """Format a timestamp or date string.

    Args:
        value: Epoch milliseconds or a date-like string.
        fmt: Optional strftime-style format. Supports ``%Y %m %d %H %M %S
            %I %p %w %j %U %W %a %A %b %B`` and ``%%`` for a literal percent.

    Returns:
        The formatted date, ``""`` for missing or unparseable input, or the
        value itself if it is neither a number nor a string.

    Example:
        >>> date_filter(1705312800000, "%Y-%m-%d")
        '2024-01-15'
    """
    if value is None:
        return ""
    if not (is_number(value) or isinstance(value, str)):
        return value
    if fmt is not None and not isinstance(fmt, str):
        raise FilterError(f"date format must be a string, got {to_text(fmt)!r}")

    dt = _parse_date(value)
    if dt is None:
        return ""
    if not fmt:
        return dt.strftime("%c")
    return _format_date(dt, fmt)


def default_filter(value: Any, fallback: Any = "") -> Any:
    """Return *fallback* when the value is missing or the empty string."""
    if value is None or value == "":
        return fallback
    return value


def upper_filter(value: Any) -> str:
    """Convert to uppercase.

    Args:
        value: The value to convert.

    Returns:
        Uppercase string, or ``""`` if the value is not a string.
    """
    if not isinstance(value, str):
        return ""
    return value.upper()


def lower_filter(value: Any) -> str:
    """Convert to lowercase.

    Args:
        value: The value to convert.

    Returns:
        Lowercase string, or ``""`` if the value is not a string.
    """
    if not isinstance(value, str):
        return ""
    return value.lower()


def capitalize_filter(value: Any) -> str:
    """Uppercase the first character and lowercase the rest."""
    if not isinstance(value, str):
        return ""
    return value[:1].upper() + value[1:].lower()


def title_filter(value: Any) -> str:
    """Uppercase the first letter of each word, lowercase the rest."""
    if not isinstance(value, str):
        return ""
    return _RE_WORD.sub(lambda m: m.group()[:1].upper() + m.group()[1:].lower(), value)


def trim_filter(value: Any) -> str:
    """Strip leading and trailing whitespace.

    Args:
        value: The value to strip.

    Returns:
        String with whitespace stripped, or ``""`` if the value is not a string.
    """
    if not isinstance(value, str):
        return ""
    return value.strip()


def replace_filter(value: Any, search: Any, replacement: Any) -> str:
    """Replace every occurrence of *search* (not a pattern) with *replacement*.

    Raises:
        FilterError: If *search* or *replacement* is not a string.
    """
    if not isinstance(search, str) or not isinstance(replacement, str):
        raise FilterError("replace expects string search and replacement arguments")
    if not isinstance(value, str):
        return ""
    if not search:
        return replacement.join(value)
    return value.replace(search, replacement)


def truncate_filter(
    value: Any, length: Any = 255, killwords: Any = False, end: Any = "..."
) -> str:
    """Truncate string to *length* characters and append *end*.

    By default the cut backs off to the last space before *length* so no word
    is split; with *killwords* the cut is made at exactly *length*.

    Args:
        value: The value to truncate.
        length: Maximum number of characters kept from the value.
        killwords: Cut in the middle of a word.
        end: Marker appended if the value was truncated (default "...").

    Returns:
        Truncated string.

    Raises:
        FilterError: If *length* is not a non-negative number.
    """
    if not is_number(length) or length < 0:
        raise FilterError(f"truncate length must be a non-negative number: {length!r}")
    if not isinstance(value, str):
        return ""

    length = int(length)
    if len(value) <= length:
        return value

    truncated = value[:length]
    if not is_truthy(killwords):
        last_space = truncated.rfind(" ")
        if last_space > 0:
            truncated = truncated[:last_space]

    return truncated + to_text(end)


def length_filter(value: Any) -> int:
    """Element count of a list, character count of a string."""
    if isinstance(value, Mapping):
        return len(value)
    return length_of(value) or 0


def first_filter(value: Any) -> Any:
    """Return the first element of a list.

    Args:
        value: The list to read from.

    Returns:
        The first element, or None for an empty list or a non-list value.
    """
    if not is_list(value) or not value:
        return None
    return value[0]


def last_filter(value: Any) -> Any:
    """Return the last element of a list.

    Args:
        value: The list to read from.

    Returns:
        The last element, or None for an empty list or a non-list value.
    """
    if not is_list(value) or not value:
        return None
    return value[-1]


def join_filter(value: Any, separator: Any = "") -> str:
    """Join the text form of each list element with *separator*."""
    if not is_list(value):
        return ""
    return to_text(separator).join(to_text(item) for item in value)


def nl2br_filter(value: Any) -> str:
    """Turn each newline into ``<br>`` followed by the newline."""
    if not isinstance(value, str):
        return ""
    return value.replace("\n", "<br>\n")


# Registry of all filters
FILTERS: Mapping[str, Callable[..., Any]] = MappingProxyType(
    {
        "date": date_filter,
        "default": default_filter,
        "upper": upper_filter,
        "lower": lower_filter,
        "capitalize": capitalize_filter,
        "title": title_filter,
        "trim": trim_filter,
        "replace": replace_filter,
        "truncate": truncate_filter,
        "length": length_filter,
        "first": first_filter,
        "last": last_filter,
        "join": join_filter,
        "nl2br": nl2br_filter,
    }
)
