"""
Injection Schemas
Pydantic models for injection logging requests and responses
"""

from typing import Optional
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict


DateType = date


# ==================== REQUEST SCHEMAS ====================

class InjectionCreate(BaseModel):
    """Schema for logging a dose"""
    protocol_id: int
    date: date
    dose_ml: Optional[float] = Field(None, gt=0)
    concentration_mg_per_ml: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = Field(None, max_length=2000)
    optimistic_id: Optional[str] = Field(
        None,
        description="Pending entry to drop once this write settles"
    )


class InjectionUpdate(BaseModel):
    """Schema for editing a logged dose"""
    date: Optional[DateType] = None
    dose_ml: Optional[float] = Field(None, gt=0)
    concentration_mg_per_ml: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = Field(None, max_length=2000)


class OptimisticInjectionCreate(BaseModel):
    """Schema for registering a not-yet-persisted dose"""
    protocol_id: int
    date: date
    dose_ml: float = Field(..., gt=0)
    concentration_mg_per_ml: float = Field(..., gt=0)
    notes: Optional[str] = Field(None, max_length=2000)


# ==================== RESPONSE SCHEMAS ====================

class InjectionResponse(BaseModel):
    """Schema for injection response; optimistic entries carry a local id"""
    id: str
    protocol_id: str
    date: date
    dose_ml: float
    concentration_mg_per_ml: float
    dose_mg: float
    notes: str = ""
    is_trashed: bool = False
    is_optimistic: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
