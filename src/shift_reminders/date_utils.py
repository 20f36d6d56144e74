"""
Date Utilities for Shift Reminder Engine

Parsing, formatting and arithmetic helpers shared by the recurrence
expander, the reminder evaluator and the reporting layer. All values are
local civil dates/times without a time zone.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Callable, Union


# Callable returning the current local instant; injected so tests can fix time
Clock = Callable[[], datetime]

DateLike = Union[date, datetime, str]

DAY_NAMES = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']

_TIME_24H = re.compile(r'^(\d{1,2}):(\d{2})$')
_TIME_12H = re.compile(r'^(\d{1,2}):(\d{2})\s*([AaPp][Mm])$')


def system_clock() -> datetime:
    """Default clock: current local time"""
    return datetime.now()


def clean_date_string(value: str) -> str:
    """Strip whitespace and zero-pad a Y-M-D string into YYYY-MM-DD"""
    cleaned = re.sub(r'\s+', '', value)
    parts = cleaned.split('-')
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid date format: {value!r}")
    year, month, day = (int(part) for part in parts)
    return f"{year:04d}-{month:02d}-{day:02d}"


def parse_date(value: DateLike) -> date:
    """Coerce a date, datetime or YYYY-MM-DD string into a date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(clean_date_string(value))


def format_date(value: DateLike) -> str:
    """Format to the YYYY-MM-DD form shifts are stored and compared in"""
    return parse_date(value).isoformat()


def parse_time(value: str) -> time:
    """
    Parse a time of day in 24h ("14:30") or 12h ("2:30 PM") form.

    Raises ValueError for anything else.
    """
    text = value.strip()

    match = _TIME_24H.match(text)
    if match:
        return time(int(match.group(1)), int(match.group(2)))

    match = _TIME_12H.match(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        period = match.group(3).upper()
        if not 1 <= hours <= 12:
            raise ValueError(f"Invalid time format: {value!r}")
        if period == 'PM' and hours != 12:
            hours += 12
        if period == 'AM' and hours == 12:
            hours = 0
        return time(hours, minutes)

    raise ValueError(f"Invalid time format: {value!r}")


def format_time_12h(value: str) -> str:
    """Render a stored time as 12-hour text (14:30 becomes 2:30 PM)"""
    parsed = parse_time(value)
    hours = parsed.hour % 12 or 12
    period = 'AM' if parsed.hour < 12 else 'PM'
    return f"{hours}:{parsed.minute:02d} {period}"


def combine_date_and_time(date_value: DateLike, time_value: str) -> datetime:
    """Combine a shift date and start time into one local datetime"""
    return datetime.combine(parse_date(date_value), parse_time(time_value))


def normalize_to_noon(value: DateLike) -> datetime:
    """Pin a date to local noon so day arithmetic never drifts across midnight"""
    return datetime.combine(parse_date(value), time(12, 0))


def add_days(value: DateLike, days: int) -> date:
    return (normalize_to_noon(value) + timedelta(days=days)).date()


def weekday_index(value: DateLike) -> int:
    """Weekday with Sunday=0 through Saturday=6"""
    return parse_date(value).isoweekday() % 7


def day_name(weekday: int) -> str:
    return DAY_NAMES[weekday]


def hours_between(start: datetime, end: datetime) -> float:
    """Fractional hours from start to end (negative when end is earlier)"""
    return (end - start).total_seconds() / 3600


def describe_time_until(now: datetime, target: datetime) -> str:
    """Human readable distance from now to target, such as: in 2 hours and 5 minutes"""
    minutes_diff = int((target - now).total_seconds() // 60)

    if minutes_diff < 60:
        return f"in {minutes_diff} minutes"

    hours_diff = minutes_diff // 60
    remaining_minutes = minutes_diff % 60
    hour_text = f"{hours_diff} hour{'s' if hours_diff > 1 else ''}"
    if remaining_minutes == 0:
        return f"in {hour_text}"
    return f"in {hour_text} and {remaining_minutes} minute{'s' if remaining_minutes > 1 else ''}"
