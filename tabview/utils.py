import re
from datetime import date, datetime, timezone
from typing import Any

DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def text_name(key: str) -> str:
    """Return the key in `Text case` (`created_at` -> `Created at`)."""
    parts = [p for p in key.split("_") if p]
    if not parts:
        return key
    parts[0] = parts[0].title()
    return " ".join(parts)


def parse_date(value: Any) -> datetime:
    """Convert a date-like value into a datetime.

    Accepts `datetime` and `date` instances and ISO-8601 strings (with or
    without time, with or without a `Z` or offset suffix).

    Raises:
        ValueError: The string is not a valid ISO-8601 date.
        TypeError: The value is not date-like.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    raise TypeError(f"Not a date: {value!r}")


def to_timestamp(value: Any) -> float:
    """Numeric timestamp of a date-like value.

    Naive values are read as UTC so that the result does not depend on the
    local time zone of the machine.
    """
    moment = parse_date(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


def calendar_day(value: Any) -> date:
    """The calendar day of the value, as written (time of day dropped)."""
    return parse_date(value).date()


def iso_day(value: Any) -> str:
    """The `YYYY-MM-DD` form of the value."""
    return calendar_day(value).isoformat()


def locale_day(value: Any) -> str:
    """The `M/D/YYYY` form of the value."""
    day = calendar_day(value)
    return f"{day.month}/{day.day}/{day.year}"


def is_day_string(text: str) -> bool:
    """Tell if the text has the `YYYY-MM-DD` shape."""
    return bool(DAY_PATTERN.match(text))
