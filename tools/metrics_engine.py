"""
Metrics Engine
Longitudinal statistics derived from protocols and logged injections
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from config import engine_config
from tools.aggregator import MonthStats
from tools.calendar_grid import shift_month
from tools.date_utils import (
    DAY_MS,
    DateLike,
    add_days,
    day_key,
    days_between,
    format_month_label,
    format_short_date,
    start_of_day,
    sunday_weekday,
)
from tools.records import Injection, Protocol, effective_dose_mg


logger = logging.getLogger(__name__)


# ==================== RESULT TYPES ====================

@dataclass(frozen=True)
class ActiveTiming:
    """Last/next dose of the active protocol"""
    last_log: Optional[Injection]
    next_due: date
    within_range: bool
    days_remaining: int


@dataclass(frozen=True)
class DoseMetrics:
    mg_per_injection: float
    mg_per_week: float


@dataclass(frozen=True)
class StreakData:
    current_streak: int
    longest_streak: int
    total_injections: int


@dataclass(frozen=True)
class TrendPoint:
    date: date
    label: str
    mg: float


@dataclass(frozen=True)
class HeatmapCell:
    date: date
    key: int
    count: int
    total_mg: float


@dataclass(frozen=True)
class Adherence:
    """Ratio always travels with both raw counts"""
    scheduled: int
    logged: int
    ratio: float


@dataclass(frozen=True)
class Notifications:
    """Alert counts for the dashboard badge"""
    missed_count: int
    upcoming_due: bool
    streak_milestone: bool
    notification_count: int


@dataclass(frozen=True)
class Insights:
    active_protocol: Optional[Protocol]
    timing: Optional[ActiveTiming]
    dose: Optional[DoseMetrics]
    streaks: StreakData
    adherence: Adherence
    daily_trend: Tuple[TrendPoint, ...]
    weekly_trend: Tuple[TrendPoint, ...]
    monthly_trend: Tuple[TrendPoint, ...]
    heatmap: Tuple[HeatmapCell, ...]
    notifications: Notifications


class MetricsEngine:
    """
    Pure metric derivations over immutable snapshots.

    Every method takes `today` explicitly so results are reproducible;
    callers pass date.today() at the edge.
    """

    # ==================== ACTIVE PROTOCOL ====================

    def latest_log(
        self,
        injections: Iterable[Injection],
        protocol_id: str
    ) -> Optional[Injection]:
        """Latest non-trashed log for a protocol; later date wins"""
        latest: Optional[Injection] = None
        for log in injections:
            if log.is_trashed or log.protocol_id != protocol_id:
                continue
            if latest is None or log.date > latest.date:
                latest = log
        return latest

    def compute_active_timing(
        self,
        active: Protocol,
        injections: Iterable[Injection],
        today: DateLike
    ) -> ActiveTiming:
        last_log = self.latest_log(injections, active.id)

        if last_log is not None and self._usable_interval(active.interval_days):
            next_due = add_days(last_log.date, active.interval_days)
        elif last_log is not None:
            next_due = start_of_day(last_log.date)
        else:
            next_due = start_of_day(active.start_date)

        within_range = active.end_date is None or next_due <= start_of_day(active.end_date)
        days_remaining = max(0, days_between(today, next_due))

        return ActiveTiming(
            last_log=last_log,
            next_due=next_due,
            within_range=within_range,
            days_remaining=days_remaining
        )

    def compute_dose_metrics(self, protocol: Protocol) -> DoseMetrics:
        mg_per_injection = protocol.dose_ml * protocol.concentration_mg_per_ml
        if self._usable_interval(protocol.interval_days):
            mg_per_week = mg_per_injection * (7 / protocol.interval_days)
        else:
            mg_per_week = 0.0
        return DoseMetrics(mg_per_injection=mg_per_injection, mg_per_week=mg_per_week)

    def last_log_by_protocol(
        self,
        injections: Iterable[Injection],
        lookup: Mapping[str, Protocol]
    ) -> Dict[str, Injection]:
        """Protocol id -> latest log, for protocols that still resolve"""
        latest: Dict[str, Injection] = {}
        for log in injections:
            if log.is_trashed or log.protocol_id not in lookup:
                continue
            existing = latest.get(log.protocol_id)
            if existing is None or log.date > existing.date:
                latest[log.protocol_id] = log
        return latest

    def first_log_date(self, injections: Iterable[Injection]) -> Optional[date]:
        dates = [start_of_day(log.date) for log in injections if not log.is_trashed]
        return min(dates) if dates else None

    # ==================== STREAKS ====================

    def compute_streaks(
        self,
        injections: Sequence[Injection],
        today: DateLike
    ) -> StreakData:
        """
        Logging streaks over distinct logged days.

        Longest: consecutive logged days no more than 7 days apart form a run.
        Current: walk the 10 most recent days; the n-th day (0-based)
        extends the streak only if it lies within 7 * (n + 1) days of today.
        """
        logs = [log for log in injections if not log.is_trashed]
        if not logs:
            return StreakData(current_streak=0, longest_streak=0, total_injections=0)

        max_gap = engine_config.STREAK_MAX_GAP_DAYS
        keys = sorted({day_key(log.date) for log in logs}, reverse=True)

        longest = 0
        run = 0
        previous: Optional[int] = None
        for key in keys:
            if previous is not None and (previous - key) // DAY_MS <= max_gap:
                run += 1
            else:
                longest = max(longest, run)
                run = 1
            previous = key
        longest = max(longest, run)

        today_key = day_key(today)
        current = 0
        for key in keys[:engine_config.STREAK_RECENT_WINDOW]:
            if (today_key - key) // DAY_MS <= max_gap * (current + 1):
                current += 1
            else:
                break

        return StreakData(
            current_streak=min(current, longest),
            longest_streak=longest,
            total_injections=len(logs)
        )

    # ==================== TREND SERIES ====================

    def _mg_by_day(self, injections: Iterable[Injection]) -> Dict[int, Tuple[int, float]]:
        counts: Dict[int, int] = defaultdict(int)
        totals: Dict[int, float] = defaultdict(float)
        for log in injections:
            if log.is_trashed:
                continue
            key = day_key(log.date)
            counts[key] += 1
            totals[key] += effective_dose_mg(log)
        return {key: (counts[key], totals[key]) for key in counts}

    def daily_trend(
        self,
        injections: Iterable[Injection],
        today: DateLike,
        days: int = engine_config.DAILY_TREND_DAYS
    ) -> List[TrendPoint]:
        """Total mg per day, oldest first, ending today"""
        by_day = self._mg_by_day(injections)
        start = add_days(today, -(days - 1))
        points = []
        for offset in range(days):
            day = add_days(start, offset)
            _, total = by_day.get(day_key(day), (0, 0.0))
            points.append(TrendPoint(date=day, label=format_short_date(day), mg=round(total, 1)))
        return points

    def weekly_trend(
        self,
        injections: Iterable[Injection],
        today: DateLike,
        weeks: int = engine_config.WEEKLY_TREND_WEEKS
    ) -> List[TrendPoint]:
        """Total mg per Sunday-aligned week, most recent last"""
        by_day = self._mg_by_day(injections)
        points = []
        for index in range(weeks):
            anchor = add_days(today, -(index * 7))
            week_start = add_days(anchor, -sunday_weekday(anchor))
            total = sum(
                by_day.get(day_key(add_days(week_start, d)), (0, 0.0))[1]
                for d in range(7)
            )
            points.append(TrendPoint(
                date=week_start,
                label=format_short_date(week_start),
                mg=round(total, 1)
            ))
        points.reverse()
        return points

    def monthly_trend(
        self,
        injections: Iterable[Injection],
        today: DateLike,
        months: int = engine_config.MONTHLY_TREND_MONTHS
    ) -> List[TrendPoint]:
        """Total mg per calendar month, most recent last"""
        totals: Dict[Tuple[int, int], float] = defaultdict(float)
        for log in injections:
            if log.is_trashed:
                continue
            day = start_of_day(log.date)
            totals[(day.year, day.month)] += effective_dose_mg(log)

        points = []
        for index in range(months):
            month_start = shift_month(today, -index)
            total = totals.get((month_start.year, month_start.month), 0.0)
            points.append(TrendPoint(
                date=month_start,
                label=format_month_label(month_start),
                mg=round(total, 1)
            ))
        points.reverse()
        return points

    def heatmap(
        self,
        injections: Iterable[Injection],
        today: DateLike,
        days: int = engine_config.HEATMAP_DAYS
    ) -> List[HeatmapCell]:
        """Per-day count and mg for the last six weeks, oldest first"""
        by_day = self._mg_by_day(injections)
        start = add_days(today, -(days - 1))
        cells = []
        for offset in range(days):
            day = add_days(start, offset)
            key = day_key(day)
            count, total = by_day.get(key, (0, 0.0))
            cells.append(HeatmapCell(date=day, key=key, count=count, total_mg=round(total, 1)))
        return cells

    # ==================== ADHERENCE ====================

    def compute_adherence(self, month_stats: MonthStats) -> Adherence:
        scheduled = month_stats.scheduled_days
        logged = month_stats.logged_days
        ratio = min(1.0, max(0.0, logged / scheduled)) if scheduled > 0 else 0.0
        return Adherence(scheduled=scheduled, logged=logged, ratio=ratio)

    # ==================== NOTIFICATIONS ====================

    def compute_notifications(
        self,
        timing: Optional[ActiveTiming],
        month_stats: MonthStats,
        streaks: StreakData,
        has_logs: bool
    ) -> Notifications:
        """
        One alert each for an upcoming dose, missed days this month and
        a streak milestone.

        Missed days are only counted once the user has logged something.
        """
        missed = 0
        if has_logs:
            missed = max(0, month_stats.scheduled_days - month_stats.logged_days)

        upcoming = timing is not None and timing.days_remaining <= engine_config.NOTIFY_UPCOMING_DAYS
        milestone = streaks.current_streak >= engine_config.NOTIFY_STREAK_MILESTONE

        return Notifications(
            missed_count=missed,
            upcoming_due=upcoming,
            streak_milestone=milestone,
            notification_count=int(upcoming) + int(missed > 0) + int(milestone)
        )

    # ==================== COMPOSITION ====================

    def build_insights(
        self,
        active: Optional[Protocol],
        injections: Sequence[Injection],
        month_stats: MonthStats,
        today: DateLike
    ) -> Insights:
        timing = self.compute_active_timing(active, injections, today) if active else None
        dose = self.compute_dose_metrics(active) if active else None
        streaks = self.compute_streaks(injections, today)

        return Insights(
            active_protocol=active,
            timing=timing,
            dose=dose,
            streaks=streaks,
            adherence=self.compute_adherence(month_stats),
            daily_trend=tuple(self.daily_trend(injections, today)),
            weekly_trend=tuple(self.weekly_trend(injections, today)),
            monthly_trend=tuple(self.monthly_trend(injections, today)),
            heatmap=tuple(self.heatmap(injections, today)),
            notifications=self.compute_notifications(
                timing, month_stats, streaks, len(injections) > 0
            )
        )

    @staticmethod
    def _usable_interval(interval_days: float) -> bool:
        try:
            return math.isfinite(interval_days) and interval_days > 0
        except TypeError:
            return False


# Singleton instance
metrics_engine = MetricsEngine()
