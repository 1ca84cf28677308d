"""
Calendar Grid Builder
Fixed six-week, Sunday-first month grids
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Tuple

from config import engine_config
from tools.date_utils import DateLike, add_days, start_of_day, sunday_weekday


@dataclass(frozen=True)
class CalendarCell:
    date: date
    is_current_month: bool


@dataclass(frozen=True)
class MonthGrid:
    """42 cells plus the range they span"""
    cells: Tuple[CalendarCell, ...]
    range_start: date
    range_end: date
    month_start: date
    month_end: date


def month_range(base_date: DateLike) -> Tuple[date, date]:
    """First and last day of base_date's month"""
    base = start_of_day(base_date)
    first = base.replace(day=1)
    next_month = shift_month(first, 1)
    return first, add_days(next_month, -1)


def shift_month(base_date: DateLike, delta: int) -> date:
    """First day of the month `delta` months away from base_date"""
    base = start_of_day(base_date)
    month_index = base.year * 12 + (base.month - 1) + delta
    return date(month_index // 12, month_index % 12 + 1, 1)


def build_month_grid(base_date: DateLike) -> MonthGrid:
    """
    Build the 6-week grid for base_date's month.

    The first cell is the Sunday on or before the 1st; the grid always
    holds exactly 42 days so every month fits regardless of its length.
    """
    month_start, month_end = month_range(base_date)
    grid_start = add_days(month_start, -sunday_weekday(month_start))

    cells = tuple(
        CalendarCell(
            date=day,
            is_current_month=(day.year, day.month) == (month_start.year, month_start.month)
        )
        for day in (add_days(grid_start, i) for i in range(engine_config.GRID_CELLS))
    )

    return MonthGrid(
        cells=cells,
        range_start=cells[0].date,
        range_end=cells[-1].date,
        month_start=month_start,
        month_end=month_end
    )


def build_week_grid(selected: DateLike) -> List[date]:
    """Sunday-first days of the week containing `selected`"""
    day = start_of_day(selected)
    week_start = add_days(day, -sunday_weekday(day))
    return [add_days(week_start, i) for i in range(7)]
