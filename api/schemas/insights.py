"""
Insights Schemas
Pydantic models for streak, adherence and trend responses
"""

from typing import Optional, List
from datetime import date
from pydantic import BaseModel, ConfigDict

from api.schemas.injection import InjectionResponse


# ==================== NESTED SCHEMAS ====================

class ActiveProtocolResponse(BaseModel):
    id: str
    name: str
    start_date: date
    end_date: Optional[date] = None
    interval_days: float
    dose_ml: float
    concentration_mg_per_ml: float
    dose_mg: float
    theme_key: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ActiveTimingResponse(BaseModel):
    """Last log and next due day for the active protocol"""
    last_log: Optional[InjectionResponse] = None
    next_due: date
    within_range: bool
    days_remaining: int

    model_config = ConfigDict(from_attributes=True)


class DoseMetricsResponse(BaseModel):
    mg_per_injection: float
    mg_per_week: float

    model_config = ConfigDict(from_attributes=True)


class StreakResponse(BaseModel):
    """Consecutive on-time injections"""
    current_streak: int
    longest_streak: int
    total_injections: int

    model_config = ConfigDict(from_attributes=True)


class AdherenceResponse(BaseModel):
    """Logged over scheduled days for the month"""
    scheduled: int
    logged: int
    ratio: float

    model_config = ConfigDict(from_attributes=True)


class TrendPointResponse(BaseModel):
    date: date
    label: str
    mg: float

    model_config = ConfigDict(from_attributes=True)


class HeatmapCellResponse(BaseModel):
    date: date
    key: int
    count: int
    total_mg: float

    model_config = ConfigDict(from_attributes=True)


class NotificationsResponse(BaseModel):
    """Alert counts for the dashboard badge"""
    missed_count: int
    upcoming_due: bool
    streak_milestone: bool
    notification_count: int

    model_config = ConfigDict(from_attributes=True)


# ==================== RESPONSE SCHEMAS ====================

class InsightsResponse(BaseModel):
    """Dashboard metrics for a user"""
    active_protocol: Optional[ActiveProtocolResponse] = None
    timing: Optional[ActiveTimingResponse] = None
    dose: Optional[DoseMetricsResponse] = None
    streaks: StreakResponse
    adherence: AdherenceResponse
    daily_trend: List[TrendPointResponse]
    weekly_trend: List[TrendPointResponse]
    monthly_trend: List[TrendPointResponse]
    heatmap: List[HeatmapCellResponse]
    notifications: NotificationsResponse

    model_config = ConfigDict(from_attributes=True)
