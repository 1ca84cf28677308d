"""
Protocol Schemas
Pydantic models for protocol API requests and responses
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict


# ==================== BASE SCHEMAS ====================

class ProtocolBase(BaseModel):
    """Base protocol schema"""
    name: str = Field(..., min_length=1, max_length=255)
    start_date: date
    interval_days: float = Field(..., gt=0, description="Days between doses, half-day steps")
    dose_ml: float = Field(..., gt=0)
    concentration_mg_per_ml: float = Field(..., gt=0)
    notes: Optional[str] = None


# ==================== REQUEST SCHEMAS ====================

class ProtocolCreate(ProtocolBase):
    """Schema for creating a protocol"""
    end_date: Optional[date] = None
    theme_key: Optional[str] = Field(None, max_length=50)
    is_active: bool = False


class ProtocolRestart(ProtocolBase):
    """Schema for starting a new active protocol and closing the current one"""
    pass


class ProtocolUpdate(BaseModel):
    """Schema for updating a protocol"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    clear_end_date: bool = False
    interval_days: Optional[float] = Field(None, gt=0)
    dose_ml: Optional[float] = Field(None, gt=0)
    concentration_mg_per_ml: Optional[float] = Field(None, gt=0)
    theme_key: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


# ==================== RESPONSE SCHEMAS ====================

class ProtocolResponse(BaseModel):
    """Schema for protocol response"""
    id: int
    user_id: str
    name: str
    start_date: date
    end_date: Optional[date] = None
    interval_days: float
    dose_ml: float
    concentration_mg_per_ml: float
    dose_mg: float
    is_active: bool
    is_trashed: bool
    theme_key: Optional[str] = None
    notes: Optional[str] = None
    trashed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProtocolSummary(BaseModel):
    """Protocol with its timing and dose metrics"""
    id: str
    name: str
    is_active: bool
    is_visible: bool
    interval_days: float
    interval_label: str
    last_log_date: Optional[date] = None
    next_due: date
    within_range: bool
    days_remaining: int
    mg_per_injection: float
    mg_per_week: float


class IntervalPreset(BaseModel):
    """Common dosing interval"""
    value: float
    label: str
    description: str
    common: bool


class ScheduledDoseItem(BaseModel):
    number: int
    date: date
    label: str


class SchedulePreview(BaseModel):
    """Upcoming occurrences for a prospective protocol"""
    start_date: date
    interval_days: float
    interval_label: str
    interval_info: IntervalPreset
    doses: List[ScheduledDoseItem]
