"""
Calendar API Router
Month calendars and day detail built from protocols and logs
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.calendar import CalendarViewResponse, SelectedDayResponse, WeekViewResponse
from tools.date_utils import format_month, format_week_range


router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/user/{user_id}", response_model=CalendarViewResponse)
async def get_calendar(
    user_id: str,
    month: Optional[date] = Query(None, description="Any day in the month to show"),
    selected: Optional[date] = Query(None, description="Day to describe in detail"),
    today: Optional[date] = Query(None, description="Reference day (default: today)"),
    db: Session = Depends(get_db)
):
    """
    Six-week month grid with per-day status, month stats and the selected day
    """
    calendar_service = services.get_calendar_service()

    view = await calendar_service.get_calendar_view(
        user_id,
        view_date=month,
        selected_date=selected,
        today=today,
        db=db
    )

    return CalendarViewResponse.model_validate(
        {
            "user_id": user_id,
            "month_start": view.grid.month_start,
            "month_end": view.grid.month_end,
            "range_start": view.grid.range_start,
            "range_end": view.grid.range_end,
            "month_label": format_month(view.grid.month_start),
            "days": list(view.days),
            "month_stats": view.month_stats,
            "selected": view.selected
        },
        from_attributes=True
    )


@router.get("/user/{user_id}/day/{day}", response_model=SelectedDayResponse)
async def get_day(
    user_id: str,
    day: date,
    today: Optional[date] = Query(None, description="Reference day (default: today)"),
    db: Session = Depends(get_db)
):
    """
    Status, logs and pending protocols for a single day
    """
    calendar_service = services.get_calendar_service()

    selected = await calendar_service.get_selected_day(user_id, day, today=today, db=db)
    return SelectedDayResponse.model_validate(selected)


@router.get("/user/{user_id}/week", response_model=WeekViewResponse)
async def get_week(
    user_id: str,
    selected: Optional[date] = Query(None, description="Any day in the week to show"),
    today: Optional[date] = Query(None, description="Reference day (default: today)"),
    db: Session = Depends(get_db)
):
    """
    Sunday-first week with per-day status and the selected day
    """
    calendar_service = services.get_calendar_service()

    view = await calendar_service.get_week_view(
        user_id,
        selected_date=selected,
        today=today,
        db=db
    )

    return WeekViewResponse.model_validate(
        {
            "user_id": user_id,
            "week_start": view.week_start,
            "week_end": view.week_end,
            "week_label": format_week_range(view.week_start, view.week_end),
            "days": list(view.days),
            "selected": view.selected
        },
        from_attributes=True
    )
