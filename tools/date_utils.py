"""
Date Utilities
Day-granular helpers shared by the schedule engine
"""

import math
from datetime import date, datetime, timedelta
from typing import Union


DateLike = Union[date, datetime]

DAY_MS = 24 * 60 * 60 * 1000

# Ordinal of 1970-01-01; day keys are milliseconds on a fixed UTC calendar axis
_EPOCH_ORDINAL = date(1970, 1, 1).toordinal()


def start_of_day(value: DateLike) -> date:
    """Strip time-of-day, keeping year/month/day only"""
    if isinstance(value, datetime):
        return value.date()
    return value


def add_days(value: DateLike, days: float) -> date:
    """
    Calendar-add a possibly fractional number of days.

    The result is always a whole day: the fractional part is dropped
    (floored), so add_days(d, 3.5) lands three days later.
    """
    return start_of_day(value) + timedelta(days=math.floor(days))


def is_same_day(a: DateLike, b: DateLike) -> bool:
    return start_of_day(a) == start_of_day(b)


def day_key(value: DateLike) -> int:
    """
    Integral mapping key for a calendar day.

    Derived from the calendar fields alone, so it is locale independent and
    stable across restarts.
    """
    return (start_of_day(value).toordinal() - _EPOCH_ORDINAL) * DAY_MS


def from_day_key(key: int) -> date:
    return date.fromordinal(key // DAY_MS + _EPOCH_ORDINAL)


def days_between(start: DateLike, end: DateLike) -> int:
    """Whole days from start to end (negative when end is earlier)"""
    return (start_of_day(end) - start_of_day(start)).days


def sunday_weekday(value: DateLike) -> int:
    """Weekday with Sunday as 0 and Saturday as 6"""
    return (start_of_day(value).weekday() + 1) % 7


# ==================== DISPLAY HELPERS ====================

_MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December"
]


def format_date(value: DateLike) -> str:
    """'Jan 5, 2024'"""
    d = start_of_day(value)
    return f"{_MONTH_NAMES[d.month - 1][:3]} {d.day}, {d.year}"


def format_short_date(value: DateLike) -> str:
    """'Jan 5'"""
    d = start_of_day(value)
    return f"{_MONTH_NAMES[d.month - 1][:3]} {d.day}"


def format_month(value: DateLike) -> str:
    """'January 2024'"""
    d = start_of_day(value)
    return f"{_MONTH_NAMES[d.month - 1]} {d.year}"


def format_month_label(value: DateLike) -> str:
    """'Jan 24'"""
    d = start_of_day(value)
    return f"{_MONTH_NAMES[d.month - 1][:3]} {d.year % 100:02d}"


def format_week_range(start: DateLike, end: DateLike) -> str:
    """'Jan 14 - 20, 2024' or 'Jan 28 - Feb 3, 2024'"""
    s = start_of_day(start)
    e = start_of_day(end)
    if s.month == e.month:
        return f"{format_short_date(s)} - {e.day}, {e.year}"
    return f"{format_short_date(s)} - {format_short_date(e)}, {e.year}"


def format_iso_date(value: DateLike) -> str:
    return start_of_day(value).isoformat()


def format_number(value: float) -> str:
    if value is None or not math.isfinite(value):
        return "--"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"
