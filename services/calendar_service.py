"""
Calendar Service
Builds month calendars from a user's stored records and pending entries
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from datetime import date
from sqlalchemy.orm import Session

from database import get_db_context
from services.injection_service import InjectionService, injection_service
from services.protocol_service import ProtocolService, protocol_service
from services.settings_service import SettingsService, settings_service
from tools.aggregator import (
    CalendarView,
    SelectedDay,
    WeekView,
    build_calendar_view,
    build_week_view,
)
from tools.metrics_engine import metrics_engine
from tools.protocol_layers import ProtocolLayers, resolve_protocol_layers
from tools.records import DisplaySettings, Injection, Protocol, without_trashed


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserSnapshot:
    """Everything the engine needs for one user, read in one pass"""
    protocols: Tuple[Protocol, ...]
    injections: Tuple[Injection, ...]
    display: DisplaySettings
    layers: ProtocolLayers

    @property
    def live_injections(self) -> Tuple[Injection, ...]:
        """Non-trashed injections, optimistic entries included"""
        return without_trashed(self.injections)

    @property
    def first_log_date(self) -> Optional[date]:
        return metrics_engine.first_log_date(self.injections)


class CalendarService:
    """
    Service assembling calendar views

    Recomputes from a fresh snapshot on every call; nothing is cached.
    """

    def __init__(
        self,
        protocols: ProtocolService = protocol_service,
        injections: InjectionService = injection_service,
        user_settings: SettingsService = settings_service
    ):
        self.protocols = protocols
        self.injections = injections
        self.user_settings = user_settings

    async def load_snapshot(
        self,
        user_id: str,
        db: Optional[Session] = None
    ) -> UserSnapshot:
        """Read protocols, injections and settings for a user"""
        async def _load(session: Session) -> UserSnapshot:
            protocols = await self.protocols.get_protocol_snapshot(user_id, db=session)
            injections = await self.injections.get_injection_snapshot(user_id, db=session)
            display = await self.user_settings.get_display_settings(user_id, db=session)

            layers = resolve_protocol_layers(
                protocols,
                hidden_ids=display.hidden_protocol_ids,
                focus_active_only=display.focus_active_only
            )
            return UserSnapshot(
                protocols=protocols,
                injections=injections,
                display=display,
                layers=layers
            )

        if db:
            return await _load(db)

        with get_db_context() as session:
            return await _load(session)

    async def get_calendar_view(
        self,
        user_id: str,
        view_date: Optional[date] = None,
        selected_date: Optional[date] = None,
        today: Optional[date] = None,
        db: Optional[Session] = None
    ) -> CalendarView:
        """
        Month calendar for a user

        Args:
            user_id: User whose records to read
            view_date: Any day in the month to show (default: today)
            selected_date: Day to describe in detail (default: view_date)
            today: Reference day for past/future decisions (default: today)
            db: Database session

        Returns:
            CalendarView with grid, per-day maps, month stats and selection
        """
        today = today or date.today()
        view_date = view_date or today
        selected_date = selected_date or view_date

        snapshot = await self.load_snapshot(user_id, db=db)

        view = build_calendar_view(
            snapshot.layers,
            snapshot.live_injections,
            view_date,
            selected_date,
            today,
            snapshot.first_log_date
        )

        logger.info(
            f"Calendar for user {user_id}, {view.grid.month_start.isoformat()}: "
            f"{view.month_stats.logged_days}/{view.month_stats.scheduled_days} days"
        )
        return view

    async def get_selected_day(
        self,
        user_id: str,
        day: date,
        today: Optional[date] = None,
        db: Optional[Session] = None
    ) -> SelectedDay:
        """Status and detail for a single day"""
        view = await self.get_calendar_view(
            user_id,
            view_date=day,
            selected_date=day,
            today=today,
            db=db
        )
        return view.selected

    async def get_week_view(
        self,
        user_id: str,
        selected_date: Optional[date] = None,
        today: Optional[date] = None,
        db: Optional[Session] = None
    ) -> WeekView:
        """Sunday-first week containing selected_date (default: today)"""
        today = today or date.today()
        selected_date = selected_date or today

        snapshot = await self.load_snapshot(user_id, db=db)

        return build_week_view(
            snapshot.layers,
            snapshot.live_injections,
            selected_date,
            today,
            snapshot.first_log_date
        )


# Singleton instance
calendar_service = CalendarService()
