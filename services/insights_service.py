"""
Insights Service
Streaks, adherence and trend metrics for a user
"""

import logging
from typing import Any, Dict, List, Optional
from datetime import date
from sqlalchemy.orm import Session

from services.calendar_service import CalendarService, calendar_service
from tools.aggregator import build_calendar_view
from tools.metrics_engine import Insights, MetricsEngine, metrics_engine


logger = logging.getLogger(__name__)


class InsightsService:
    """
    Service for longitudinal adherence metrics
    """

    def __init__(
        self,
        calendar: CalendarService = calendar_service,
        engine: MetricsEngine = metrics_engine
    ):
        self.calendar = calendar
        self.engine = engine

    async def get_insights(
        self,
        user_id: str,
        today: Optional[date] = None,
        month: Optional[date] = None,
        db: Optional[Session] = None
    ) -> Insights:
        """
        Dashboard metrics for a user

        Args:
            user_id: User whose records to read
            today: Reference day (default: today)
            month: Any day in the month used for adherence (default: today)
            db: Database session

        Returns:
            Insights with active timing, streaks, adherence and trends
        """
        today = today or date.today()
        snapshot = await self.calendar.load_snapshot(user_id, db=db)
        injections = snapshot.live_injections

        view = build_calendar_view(
            snapshot.layers,
            injections,
            month or today,
            today,
            today,
            snapshot.first_log_date
        )

        insights = self.engine.build_insights(
            snapshot.layers.active,
            injections,
            view.month_stats,
            today
        )

        logger.info(
            f"Insights for user {user_id}: streak {insights.streaks.current_streak}/"
            f"{insights.streaks.longest_streak}, adherence "
            f"{insights.adherence.logged}/{insights.adherence.scheduled}"
        )
        return insights

    async def get_protocol_summaries(
        self,
        user_id: str,
        today: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[Dict[str, Any]]:
        """Per-protocol last log, next due day and dose, active first"""
        today = today or date.today()
        snapshot = await self.calendar.load_snapshot(user_id, db=db)
        layers = snapshot.layers
        last_logs = self.engine.last_log_by_protocol(snapshot.live_injections, layers.lookup)

        summaries = []
        for protocol in layers.ordered:
            timing = self.engine.compute_active_timing(protocol, snapshot.live_injections, today)
            dose = self.engine.compute_dose_metrics(protocol)
            last_log = last_logs.get(protocol.id)
            summaries.append({
                "protocol": protocol,
                "is_visible": layers.visible.get(protocol.id, False),
                "last_log_date": last_log.date if last_log else None,
                "next_due": timing.next_due,
                "within_range": timing.within_range,
                "days_remaining": timing.days_remaining,
                "mg_per_injection": dose.mg_per_injection,
                "mg_per_week": dose.mg_per_week,
            })
        return summaries


# Singleton instance
insights_service = InsightsService()
