"""
Settings Schemas
Pydantic models for per-user display settings
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict


class SettingsUpdate(BaseModel):
    """Schema for updating display settings"""
    timezone: Optional[str] = Field(None, max_length=64)
    default_protocol_id: Optional[int] = None
    focus_active_only: Optional[bool] = None
    hidden_protocol_ids: Optional[List[str]] = None


class SettingsResponse(BaseModel):
    """Schema for settings response"""
    user_id: str
    timezone: str
    default_protocol_id: Optional[int] = None
    hidden_protocol_ids: List[str] = []
    focus_active_only: bool
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
