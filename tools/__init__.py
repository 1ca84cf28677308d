"""
Tools Package
Pure schedule and adherence engine for DoseCadence
"""

from .records import (
    Protocol,
    Injection,
    DisplaySettings,
    effective_dose_mg,
    without_trashed
)

from .date_utils import (
    DAY_MS,
    start_of_day,
    add_days,
    is_same_day,
    day_key,
    from_day_key,
    days_between,
    sunday_weekday,
    format_date,
    format_short_date,
    format_month,
    format_month_label,
    format_week_range,
    format_iso_date,
    format_number
)

from .schedule_generator import (
    ScheduledDose,
    PROTOCOL_INTERVALS,
    align_to_range_start,
    generate_schedule_in_range,
    calculate_next_dose,
    preview_schedule,
    is_valid_interval,
    get_interval_info,
    format_interval
)

from .calendar_grid import (
    CalendarCell,
    MonthGrid,
    month_range,
    shift_month,
    build_month_grid,
    build_week_grid
)

from .protocol_layers import (
    ProtocolLayers,
    resolve_protocol_layers
)

from .aggregator import (
    DayStatus,
    DaySummary,
    MonthStats,
    SelectedDay,
    DayCell,
    CalendarView,
    WeekView,
    build_schedule_by_date,
    build_logs_by_date,
    build_logged_summary,
    compute_month_stats,
    classify_day,
    select_day,
    build_calendar_view,
    build_week_view
)

from .metrics_engine import (
    MetricsEngine,
    ActiveTiming,
    DoseMetrics,
    StreakData,
    TrendPoint,
    HeatmapCell,
    Adherence,
    Insights,
    Notifications,
    metrics_engine
)

from .optimistic_buffer import (
    OptimisticBuffer,
    OptimisticBufferRegistry,
    create_optimistic_id,
    is_optimistic_id,
    optimistic_buffers
)

__all__ = [
    # Records
    "Protocol",
    "Injection",
    "DisplaySettings",
    "effective_dose_mg",
    "without_trashed",

    # Date Utilities
    "DAY_MS",
    "start_of_day",
    "add_days",
    "is_same_day",
    "day_key",
    "from_day_key",
    "days_between",
    "sunday_weekday",
    "format_date",
    "format_short_date",
    "format_month",
    "format_month_label",
    "format_week_range",
    "format_iso_date",
    "format_number",

    # Schedule Generator
    "ScheduledDose",
    "PROTOCOL_INTERVALS",
    "align_to_range_start",
    "generate_schedule_in_range",
    "calculate_next_dose",
    "preview_schedule",
    "is_valid_interval",
    "get_interval_info",
    "format_interval",

    # Calendar Grid
    "CalendarCell",
    "MonthGrid",
    "month_range",
    "shift_month",
    "build_month_grid",
    "build_week_grid",

    # Protocol Layers
    "ProtocolLayers",
    "resolve_protocol_layers",

    # Aggregator
    "DayStatus",
    "DaySummary",
    "MonthStats",
    "SelectedDay",
    "DayCell",
    "CalendarView",
    "WeekView",
    "build_schedule_by_date",
    "build_logs_by_date",
    "build_logged_summary",
    "compute_month_stats",
    "classify_day",
    "select_day",
    "build_calendar_view",
    "build_week_view",

    # Metrics Engine
    "MetricsEngine",
    "ActiveTiming",
    "DoseMetrics",
    "StreakData",
    "TrendPoint",
    "HeatmapCell",
    "Adherence",
    "Insights",
    "Notifications",
    "metrics_engine",

    # Optimistic Buffer
    "OptimisticBuffer",
    "OptimisticBufferRegistry",
    "create_optimistic_id",
    "is_optimistic_id",
    "optimistic_buffers"
]
