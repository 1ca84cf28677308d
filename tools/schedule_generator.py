"""
Schedule Generator
Expands a protocol's interval rule into the calendar days it fires on
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from fractions import Fraction
from typing import Dict, List, Optional, Any

from config import engine_config
from tools.date_utils import DateLike, add_days, days_between, start_of_day


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduledDose:
    """One occurrence in a schedule preview"""
    number: int
    date: date


PROTOCOL_INTERVALS: List[Dict[str, Any]] = [
    {"value": 1, "label": "ED", "description": "Every Day", "common": False},
    {"value": 2, "label": "EOD", "description": "Every Other Day", "common": True},
    {"value": 3, "label": "E3D", "description": "Every 3 Days", "common": True},
    {"value": 3.5, "label": "E3.5D", "description": "Twice Weekly", "common": True},
    {"value": 7, "label": "E7D", "description": "Weekly", "common": True},
    {"value": 14, "label": "E14D", "description": "Bi-weekly", "common": False},
]


def _as_fraction(interval_days: float) -> Optional[Fraction]:
    """Exact rational interval, or None when it cannot drive a schedule"""
    try:
        if not math.isfinite(interval_days) or interval_days <= 0:
            return None
    except TypeError:
        return None
    interval = Fraction(interval_days).limit_denominator(
        engine_config.INTERVAL_MAX_DENOMINATOR
    )
    return interval if interval > 0 else None


def _occurrence_offset(index: int, interval: Fraction) -> int:
    """Whole-day offset from the start date of occurrence `index`"""
    return math.floor(index * interval)


def _first_index_at_or_after(offset: int, interval: Fraction) -> int:
    """Smallest occurrence index whose day offset is >= offset"""
    if offset <= 0:
        return 0
    return math.ceil(offset / interval)


def align_to_range_start(
    start_date: DateLike,
    interval_days: float,
    range_start: DateLike
) -> Optional[date]:
    """
    First occurrence on or after range_start.

    Jumps straight to the aligned occurrence instead of walking from
    start_date, so far-future ranges cost the same as near ones.
    Returns None for a non-positive interval.
    """
    interval = _as_fraction(interval_days)
    if interval is None:
        return None

    start = start_of_day(start_date)
    offset = max(0, days_between(start, range_start))
    index = _first_index_at_or_after(offset, interval)
    return add_days(start, _occurrence_offset(index, interval))


def generate_schedule_in_range(
    start_date: DateLike,
    interval_days: float,
    range_start: DateLike,
    range_end: DateLike,
    end_limit: Optional[DateLike] = None
) -> List[date]:
    """
    Days on which a protocol fires within [range_start, range_end].

    Args:
        start_date: Protocol start date (first occurrence)
        interval_days: Days between occurrences, may be fractional
        range_start: First day of the query window (inclusive)
        range_end: Last day of the query window (inclusive)
        end_limit: Protocol end date (inclusive), None when unbounded

    Returns:
        Ascending, duplicate-free list of dates. Fractional intervals
        accumulate exactly, so 3.5 yields gaps of 3, 4, 3, 4, ...
    """
    interval = _as_fraction(interval_days)
    if interval is None:
        logger.debug(f"Skipping schedule with unusable interval {interval_days!r}")
        return []

    start = start_of_day(start_date)
    window_start = start_of_day(range_start)
    window_end = start_of_day(range_end)
    limit = start_of_day(end_limit) if end_limit is not None else window_end
    last_day = min(window_end, limit)

    if last_day < window_start or start > last_day:
        return []

    first = align_to_range_start(start, interval_days, window_start)
    index = _first_index_at_or_after(days_between(start, first), interval)

    dates: List[date] = []
    while True:
        day_offset = _occurrence_offset(index, interval)
        current = add_days(start, day_offset)
        if current > last_day:
            break
        dates.append(current)
        # Next index landing on a later day; sub-day intervals skip ahead
        index = _first_index_at_or_after(day_offset + 1, interval)

    return dates


def calculate_next_dose(current: DateLike, interval_days: float) -> date:
    """Day of the dose following one taken on `current`"""
    return add_days(current, interval_days)


def preview_schedule(
    start_date: DateLike,
    interval_days: float,
    count: int = engine_config.PREVIEW_COUNT
) -> List[ScheduledDose]:
    """First `count` occurrences of a protocol starting on start_date"""
    interval = _as_fraction(interval_days)
    if interval is None or count <= 0:
        return []

    start = start_of_day(start_date)
    preview: List[ScheduledDose] = []
    index = 0
    while len(preview) < count:
        day_offset = _occurrence_offset(index, interval)
        preview.append(ScheduledDose(number=len(preview) + 1, date=add_days(start, day_offset)))
        index = _first_index_at_or_after(day_offset + 1, interval)
    return preview


def is_valid_interval(interval_days: float) -> bool:
    """Finite, at least half a day, and a whole number of half days"""
    try:
        if not math.isfinite(interval_days):
            return False
    except TypeError:
        return False
    if interval_days < engine_config.MIN_INTERVAL_DAYS:
        return False
    steps = interval_days / engine_config.INTERVAL_STEP_DAYS
    return abs(steps - round(steps)) < 1e-9


def get_interval_info(interval_days: float) -> Dict[str, Any]:
    for preset in PROTOCOL_INTERVALS:
        if preset["value"] == interval_days:
            return dict(preset)
    label = _format_days(interval_days)
    return {
        "value": interval_days,
        "label": f"E{label}D",
        "description": f"Every {label} Days",
        "common": False,
    }


def format_interval(interval_days: float) -> str:
    """'7 days', '1 day', '3.5 days (84 hours)'"""
    if float(interval_days).is_integer():
        days = int(interval_days)
        return f"{days} day{'' if days == 1 else 's'}"
    hours = _format_days(interval_days * 24)
    return f"{_format_days(interval_days)} days ({hours} hours)"


def _format_days(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"
