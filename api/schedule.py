"""
Schedule API Router
Interval presets and schedule previews for prospective protocols
"""

from typing import List
from datetime import date
from fastapi import APIRouter, HTTPException, status, Query

from api.schemas.protocol import IntervalPreset, ScheduledDoseItem, SchedulePreview
from config import engine_config
from tools.date_utils import format_date
from tools.schedule_generator import (
    PROTOCOL_INTERVALS,
    format_interval,
    get_interval_info,
    is_valid_interval,
    preview_schedule,
)


router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get("/intervals", response_model=List[IntervalPreset])
async def list_intervals():
    """
    Common dosing intervals
    """
    return [IntervalPreset(**preset) for preset in PROTOCOL_INTERVALS]


@router.get("/preview", response_model=SchedulePreview)
async def preview(
    start_date: date = Query(..., description="First scheduled day"),
    interval_days: float = Query(..., description="Days between doses"),
    count: int = Query(
        engine_config.PREVIEW_COUNT,
        ge=1,
        le=engine_config.PREVIEW_MAX_COUNT
    )
):
    """
    Upcoming doses for a start date and interval
    """
    if not is_valid_interval(interval_days):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Interval must be at least 0.5 days in half-day steps, got {interval_days}"
        )

    doses = preview_schedule(start_date, interval_days, count)

    return SchedulePreview(
        start_date=start_date,
        interval_days=interval_days,
        interval_label=format_interval(interval_days),
        interval_info=IntervalPreset(**get_interval_info(interval_days)),
        doses=[
            ScheduledDoseItem(number=d.number, date=d.date, label=format_date(d.date))
            for d in doses
        ]
    )
