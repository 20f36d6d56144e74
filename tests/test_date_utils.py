import pytest
from datetime import date, datetime, time
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_reminders.date_utils import (
    add_days, combine_date_and_time, describe_time_until, format_time_12h,
    parse_date, parse_time, weekday_index
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("14:30", time(14, 30)),
        ("9:05", time(9, 5)),
        ("2:30 PM", time(14, 30)),
        ("12:00 AM", time(0, 0)),
        ("12:15 pm", time(12, 15)),
    ],
)
def test_parse_time(value, expected):
    assert parse_time(value) == expected


@pytest.mark.parametrize("value", ["", "25:00", "13:00 PM", "noon"])
def test_parse_time_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_time(value)


@pytest.mark.parametrize(
    "value, expected",
    [("00:00", "12:00 AM"), ("12:00", "12:00 PM"), ("17:45", "5:45 PM"), ("9:05", "9:05 AM")],
)
def test_format_time_12h(value, expected):
    assert format_time_12h(value) == expected


def test_parse_date_variants():
    assert parse_date("2024-2-9") == date(2024, 2, 9)
    assert parse_date(datetime(2024, 2, 9, 23, 59)) == date(2024, 2, 9)
    assert parse_date(date(2024, 2, 9)) == date(2024, 2, 9)


def test_combine_date_and_time():
    assert combine_date_and_time("2024-06-05", "9:55 AM") == datetime(2024, 6, 5, 9, 55)


@pytest.mark.parametrize(
    "value, expected",
    [("2024-06-09", 0), ("2024-06-05", 3), ("2024-06-08", 6)],
)
def test_weekday_index_sunday_first(value, expected):
    assert weekday_index(value) == expected


def test_add_days_handles_leap_year():
    assert add_days("2024-02-28", 1) == date(2024, 2, 29)
    assert add_days("2023-02-28", 1) == date(2023, 3, 1)


def test_describe_time_until_truncates_seconds():
    now = datetime(2024, 6, 5, 9, 0, 30)
    assert describe_time_until(now, datetime(2024, 6, 5, 9, 45)) == "in 44 minutes"
