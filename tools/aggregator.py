"""
Schedule/Log Aggregator
Merges generated schedules with logged injections, keyed by day
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from tools.calendar_grid import MonthGrid, build_month_grid, build_week_grid
from tools.date_utils import DateLike, day_key, format_number, from_day_key, start_of_day
from tools.protocol_layers import ProtocolLayers
from tools.records import Injection, Protocol, effective_dose_mg
from tools.schedule_generator import generate_schedule_in_range


logger = logging.getLogger(__name__)


class DayStatus(str, Enum):
    """Status of a calendar day"""
    LOGGED = "logged"
    MISSED = "missed"
    SCHEDULED = "scheduled"
    NONE = "none"


@dataclass(frozen=True)
class DaySummary:
    count: int
    total_mg: float


@dataclass(frozen=True)
class MonthStats:
    """Adherence numerator and denominator for one month"""
    scheduled_days: int
    logged_days: int


@dataclass(frozen=True)
class SelectedDay:
    date: date
    key: int
    status: DayStatus
    label: str
    dose_label: str
    logs: Tuple[Injection, ...]
    summary: Optional[DaySummary]
    scheduled_protocol_ids: Tuple[str, ...]
    pending_protocol_ids: Tuple[str, ...]
    is_past: bool


@dataclass(frozen=True)
class DayCell:
    date: date
    key: int
    is_current_month: bool
    is_today: bool
    status: DayStatus
    label: str
    scheduled_protocol_ids: Tuple[str, ...]
    log_count: int
    total_mg: float


@dataclass(frozen=True)
class CalendarView:
    """Everything the month calendar renders"""
    grid: MonthGrid
    schedule_by_date: Dict[int, Tuple[str, ...]]
    logs_by_date: Dict[int, Tuple[Injection, ...]]
    logged_summary: Dict[int, DaySummary]
    month_stats: MonthStats
    selected: SelectedDay
    days: Tuple[DayCell, ...]


@dataclass(frozen=True)
class WeekView:
    """Seven days around the selected day"""
    week_start: date
    week_end: date
    selected: SelectedDay
    days: Tuple[DayCell, ...]


# ==================== PER-DAY MAPS ====================

def build_schedule_by_date(
    protocols: Iterable[Protocol],
    visible: Mapping[str, bool],
    range_start: DateLike,
    range_end: DateLike
) -> Dict[int, Tuple[str, ...]]:
    """Day key -> ids of visible protocols scheduled that day"""
    by_date: Dict[int, List[str]] = defaultdict(list)

    for protocol in protocols:
        if not visible.get(protocol.id, False):
            continue

        for day in generate_schedule_in_range(
            protocol.start_date,
            protocol.interval_days,
            range_start,
            range_end,
            protocol.end_date
        ):
            by_date[day_key(day)].append(protocol.id)

    return {key: tuple(ids) for key, ids in by_date.items()}


def _is_visible_log(
    log: Injection,
    lookup: Mapping[str, Protocol],
    visible: Mapping[str, bool]
) -> bool:
    # Unresolved protocol ids drop out of protocol-scoped views
    return log.protocol_id in lookup and visible.get(log.protocol_id, False)


def build_logs_by_date(
    injections: Iterable[Injection],
    lookup: Mapping[str, Protocol],
    visible: Mapping[str, bool]
) -> Dict[int, Tuple[Injection, ...]]:
    """Day key -> injections logged against a known, visible protocol"""
    by_date: Dict[int, List[Injection]] = defaultdict(list)
    for log in injections:
        if not _is_visible_log(log, lookup, visible):
            continue
        by_date[day_key(log.date)].append(log)
    return {key: tuple(logs) for key, logs in by_date.items()}


def build_logged_summary(
    injections: Iterable[Injection],
    lookup: Mapping[str, Protocol],
    visible: Mapping[str, bool]
) -> Dict[int, DaySummary]:
    """Day key -> count and summed mg of visible logs"""
    counts: Dict[int, int] = defaultdict(int)
    totals: Dict[int, float] = defaultdict(float)
    for log in injections:
        if not _is_visible_log(log, lookup, visible):
            continue
        key = day_key(log.date)
        counts[key] += 1
        totals[key] += effective_dose_mg(log)
    return {key: DaySummary(count=counts[key], total_mg=totals[key]) for key in counts}


# ==================== MONTH STATISTICS ====================

def compute_month_stats(
    schedule_by_date: Mapping[int, Sequence[str]],
    logged_summary: Mapping[int, DaySummary],
    month_start: DateLike,
    month_end: DateLike,
    today: DateLike,
    first_log_date: Optional[DateLike] = None
) -> MonthStats:
    """
    Scheduled and logged day counts for one month.

    Scheduled days only count up to today and, once the user has logged
    anything, from the first log onward. Logged days have no such bounds.
    """
    first = day_key(month_start)
    last = day_key(month_end)
    today_key = day_key(today)
    tracking_key = day_key(first_log_date) if first_log_date is not None else None

    scheduled_days = 0
    for key, protocol_ids in schedule_by_date.items():
        if not protocol_ids:
            continue
        if not first <= key <= last or key > today_key:
            continue
        if tracking_key is not None and key < tracking_key:
            continue
        scheduled_days += 1

    logged_days = sum(
        1 for key, summary in logged_summary.items()
        if first <= key <= last and summary.count > 0
    )

    return MonthStats(scheduled_days=scheduled_days, logged_days=logged_days)


# ==================== DAY STATUS ====================

def classify_day(
    day: DateLike,
    log_count: int,
    scheduled: bool,
    today: DateLike,
    has_logs: bool,
    first_log_date: Optional[DateLike] = None
) -> Tuple[DayStatus, str]:
    """
    Status and label for one day, by priority:
    logged, missed, scheduled, nothing.

    A scheduled past day is only "Missed" once the user has logged
    something and the day is not before their first log.
    """
    if log_count > 0:
        return DayStatus.LOGGED, (f"{log_count} logs" if log_count > 1 else "Logged")

    if not scheduled:
        return DayStatus.NONE, "No injection"

    day = start_of_day(day)
    is_past = day < start_of_day(today)
    before_tracking = first_log_date is not None and day < start_of_day(first_log_date)
    if is_past and has_logs and not before_tracking:
        return DayStatus.MISSED, "Missed"
    return DayStatus.SCHEDULED, "Scheduled"


def select_day(
    selected: DateLike,
    schedule_by_date: Mapping[int, Sequence[str]],
    logs_by_date: Mapping[int, Sequence[Injection]],
    logged_summary: Mapping[int, DaySummary],
    dose_map: Mapping[str, float],
    today: DateLike,
    has_logs: bool,
    first_log_date: Optional[DateLike] = None
) -> SelectedDay:
    """Status, dose label and detail for the chosen day"""
    key = day_key(selected)
    logs = tuple(logs_by_date.get(key, ()))
    summary = logged_summary.get(key)
    scheduled_ids = tuple(schedule_by_date.get(key, ()))
    logged_ids = {log.protocol_id for log in logs}
    pending_ids = tuple(pid for pid in scheduled_ids if pid not in logged_ids)

    status, label = classify_day(
        selected,
        summary.count if summary else 0,
        bool(scheduled_ids),
        today,
        has_logs,
        first_log_date
    )

    if summary:
        dose_label = f"{format_number(summary.total_mg)} mg"
    elif scheduled_ids:
        dose_label = f"{format_number(dose_map.get(scheduled_ids[0], 0))} mg"
    else:
        dose_label = "--"

    return SelectedDay(
        date=from_day_key(key),
        key=key,
        status=status,
        label=label,
        dose_label=dose_label,
        logs=logs,
        summary=summary,
        scheduled_protocol_ids=scheduled_ids,
        pending_protocol_ids=pending_ids,
        is_past=start_of_day(selected) < start_of_day(today)
    )


# ==================== CALENDAR VIEWS ====================

def _day_cells(
    days: Iterable[date],
    month: date,
    schedule_by_date: Mapping[int, Sequence[str]],
    logged_summary: Mapping[int, DaySummary],
    today: DateLike,
    has_logs: bool,
    first_log_date: Optional[DateLike]
) -> Tuple[DayCell, ...]:
    today_day = start_of_day(today)
    cells = []
    for day in days:
        key = day_key(day)
        summary = logged_summary.get(key)
        scheduled_ids = schedule_by_date.get(key, ())
        status, label = classify_day(
            day,
            summary.count if summary else 0,
            bool(scheduled_ids),
            today_day,
            has_logs,
            first_log_date
        )
        cells.append(DayCell(
            date=day,
            key=key,
            is_current_month=(day.year, day.month) == (month.year, month.month),
            is_today=day == today_day,
            status=status,
            label=label,
            scheduled_protocol_ids=tuple(scheduled_ids),
            log_count=summary.count if summary else 0,
            total_mg=summary.total_mg if summary else 0.0
        ))
    return tuple(cells)


def build_calendar_view(
    layers: ProtocolLayers,
    injections: Sequence[Injection],
    view_date: DateLike,
    selected_date: DateLike,
    today: DateLike,
    first_log_date: Optional[DateLike] = None
) -> CalendarView:
    """
    Compose grid, per-day maps, month stats and the selected day.

    `injections` must already exclude trashed entries; optimistic entries
    are treated like durable ones.
    """
    grid = build_month_grid(view_date)
    has_logs = len(injections) > 0

    schedule_by_date = build_schedule_by_date(
        layers.ordered, layers.visible, grid.range_start, grid.range_end
    )
    logs_by_date = build_logs_by_date(injections, layers.lookup, layers.visible)
    logged_summary = build_logged_summary(injections, layers.lookup, layers.visible)

    month_stats = compute_month_stats(
        schedule_by_date,
        logged_summary,
        grid.month_start,
        grid.month_end,
        today,
        first_log_date
    )

    # Selection may fall outside the grid; schedule that one day on its own
    selected_key = day_key(selected_date)
    if day_key(grid.range_start) <= selected_key <= day_key(grid.range_end):
        selected_schedule = schedule_by_date
    else:
        selected_schedule = build_schedule_by_date(
            layers.ordered, layers.visible, selected_date, selected_date
        )

    selected = select_day(
        selected_date,
        selected_schedule,
        logs_by_date,
        logged_summary,
        layers.dose_map,
        today,
        has_logs,
        first_log_date
    )

    days = _day_cells(
        (cell.date for cell in grid.cells),
        grid.month_start,
        schedule_by_date,
        logged_summary,
        today,
        has_logs,
        first_log_date
    )

    logger.debug(
        f"Built calendar view for {grid.month_start.isoformat()}: "
        f"{len(schedule_by_date)} scheduled days, {len(logs_by_date)} logged days"
    )

    return CalendarView(
        grid=grid,
        schedule_by_date=schedule_by_date,
        logs_by_date=logs_by_date,
        logged_summary=logged_summary,
        month_stats=month_stats,
        selected=selected,
        days=days
    )


def build_week_view(
    layers: ProtocolLayers,
    injections: Sequence[Injection],
    selected_date: DateLike,
    today: DateLike,
    first_log_date: Optional[DateLike] = None
) -> WeekView:
    """Sunday-first week around the selected day, with the same statuses as the month grid"""
    week = build_week_grid(selected_date)
    has_logs = len(injections) > 0

    schedule_by_date = build_schedule_by_date(layers.ordered, layers.visible, week[0], week[-1])
    logs_by_date = build_logs_by_date(injections, layers.lookup, layers.visible)
    logged_summary = build_logged_summary(injections, layers.lookup, layers.visible)

    selected = select_day(
        selected_date,
        schedule_by_date,
        logs_by_date,
        logged_summary,
        layers.dose_map,
        today,
        has_logs,
        first_log_date
    )

    return WeekView(
        week_start=week[0],
        week_end=week[-1],
        selected=selected,
        days=_day_cells(
            week,
            start_of_day(selected_date),
            schedule_by_date,
            logged_summary,
            today,
            has_logs,
            first_log_date
        )
    )
