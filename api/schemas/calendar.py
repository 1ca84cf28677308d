"""
Calendar Schemas
Pydantic models for month calendar and day detail responses
"""

from typing import Optional, List
from datetime import date
from pydantic import BaseModel, ConfigDict

from api.schemas.injection import InjectionResponse
from tools.aggregator import DayStatus


# ==================== NESTED SCHEMAS ====================

class DaySummaryResponse(BaseModel):
    """Logged totals for one day"""
    count: int
    total_mg: float

    model_config = ConfigDict(from_attributes=True)


class MonthStatsResponse(BaseModel):
    """Scheduled and logged day counts for the visible month"""
    scheduled_days: int
    logged_days: int

    model_config = ConfigDict(from_attributes=True)


class DayCellResponse(BaseModel):
    """One cell of the 6x7 month grid"""
    date: date
    key: int
    is_current_month: bool
    is_today: bool
    status: DayStatus
    label: str
    scheduled_protocol_ids: List[str]
    log_count: int
    total_mg: float

    model_config = ConfigDict(from_attributes=True)


class SelectedDayResponse(BaseModel):
    """Detail for the selected day"""
    date: date
    key: int
    status: DayStatus
    label: str
    dose_label: str
    logs: List[InjectionResponse]
    summary: Optional[DaySummaryResponse] = None
    scheduled_protocol_ids: List[str]
    pending_protocol_ids: List[str]
    is_past: bool

    model_config = ConfigDict(from_attributes=True)


# ==================== RESPONSE SCHEMAS ====================

class CalendarViewResponse(BaseModel):
    """Month calendar for a user"""
    user_id: str
    month_start: date
    month_end: date
    range_start: date
    range_end: date
    month_label: str
    days: List[DayCellResponse]
    month_stats: MonthStatsResponse
    selected: SelectedDayResponse


class WeekViewResponse(BaseModel):
    """Seven-day strip around the selected day"""
    user_id: str
    week_start: date
    week_end: date
    week_label: str
    days: List[DayCellResponse]
    selected: SelectedDayResponse
