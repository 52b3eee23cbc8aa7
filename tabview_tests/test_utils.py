from datetime import date, datetime, timezone

import pytest

from tabview.utils import (
    calendar_day,
    is_day_string,
    iso_day,
    locale_day,
    parse_date,
    text_name,
    to_timestamp,
)


@pytest.mark.parametrize(
    "key, expected",
    [
        ("created_at", "Created at"),
        ("name", "Name"),
        ("is_active", "Is active"),
        ("__id__", "Id"),
        ("", ""),
    ],
)
def test_text_name(key, expected):
    assert text_name(key) == expected


class TestParseDate:
    def test_strings(self):
        assert parse_date("2024-03-01") == datetime(2024, 3, 1)
        assert parse_date("2024-03-01T10:20:30Z") == datetime(
            2024, 3, 1, 10, 20, 30, tzinfo=timezone.utc
        )

    def test_date(self):
        assert parse_date(date(2024, 3, 1)) == datetime(2024, 3, 1)

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_date("01/03/2024")
        with pytest.raises(TypeError):
            parse_date(20240301)


def test_to_timestamp_naive_is_utc():
    assert to_timestamp("1970-01-02") == 86400
    assert to_timestamp("1970-01-01T01:00:00+01:00") == 0


def test_day_forms():
    value = "2024-03-01T23:30:00-05:00"
    assert calendar_day(value) == date(2024, 3, 1)
    assert iso_day(value) == "2024-03-01"
    assert locale_day(value) == "3/1/2024"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2024-03-01", True),
        ("2024-3-1", False),
        ("2024-03-01T00:00", False),
        ("3/1/2024", False),
    ],
)
def test_is_day_string(text, expected):
    assert is_day_string(text) is expected
