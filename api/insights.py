"""
Insights API Router
Streaks, adherence and dose trends
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.insights import InsightsResponse


router = APIRouter(prefix="/insights", tags=["insights"])


@router.get("/user/{user_id}", response_model=InsightsResponse)
async def get_insights(
    user_id: str,
    today: Optional[date] = Query(None, description="Reference day (default: today)"),
    month: Optional[date] = Query(None, description="Month used for adherence (default: today)"),
    db: Session = Depends(get_db)
):
    """
    Dashboard metrics for a user

    - **timing**: Last log and next due day for the active protocol
    - **streaks**: Consecutive injections no more than a week apart
    - **adherence**: Logged over scheduled days for the month
    - **daily_trend** / **weekly_trend** / **monthly_trend** / **heatmap**: mg totals
    - **notifications**: Upcoming dose, missed days and streak milestone alerts
    """
    insights_service = services.get_insights_service()

    insights = await insights_service.get_insights(user_id, today=today, month=month, db=db)
    return InsightsResponse.model_validate(insights)
