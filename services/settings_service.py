"""
Settings Service
Per-user display settings: visibility, focus mode, default protocol
"""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from config import settings as app_settings
from database import get_db_context
import models
from tools.records import DisplaySettings


logger = logging.getLogger(__name__)


def to_display_settings(row: models.UserSettings) -> DisplaySettings:
    return DisplaySettings(
        hidden_protocol_ids=tuple(str(pid) for pid in (row.hidden_protocol_ids or [])),
        focus_active_only=bool(row.focus_active_only),
        timezone=row.timezone or app_settings.DEFAULT_TIMEZONE,
        default_protocol_id=(
            str(row.default_protocol_id) if row.default_protocol_id is not None else None
        )
    )


class SettingsService:
    """
    Service for user display settings
    """

    def _get_or_create(self, session: Session, user_id: str) -> models.UserSettings:
        row = session.query(models.UserSettings).filter(
            models.UserSettings.user_id == user_id
        ).first()
        if row is None:
            row = models.UserSettings(
                user_id=user_id,
                timezone=app_settings.DEFAULT_TIMEZONE,
                hidden_protocol_ids=[],
                focus_active_only=app_settings.DEFAULT_FOCUS_ACTIVE_ONLY
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            logger.info(f"Created default settings for user {user_id}")
        return row

    async def get_settings(
        self,
        user_id: str,
        db: Optional[Session] = None
    ) -> models.UserSettings:
        """Get a user's settings, creating defaults on first access"""
        if db:
            return self._get_or_create(db, user_id)

        with get_db_context() as session:
            return self._get_or_create(session, user_id)

    async def update_settings(
        self,
        user_id: str,
        timezone: Optional[str] = None,
        default_protocol_id: Optional[int] = None,
        focus_active_only: Optional[bool] = None,
        hidden_protocol_ids: Optional[List[str]] = None,
        db: Optional[Session] = None
    ) -> models.UserSettings:
        """Update settings; None values are left unchanged"""
        def _update(session: Session) -> models.UserSettings:
            row = self._get_or_create(session, user_id)
            if timezone is not None:
                row.timezone = timezone
            if default_protocol_id is not None:
                row.default_protocol_id = default_protocol_id
            if focus_active_only is not None:
                row.focus_active_only = focus_active_only
            if hidden_protocol_ids is not None:
                row.hidden_protocol_ids = sorted({str(pid) for pid in hidden_protocol_ids})

            session.commit()
            session.refresh(row)

            logger.info(f"Updated settings for user {user_id}")
            return row

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def toggle_visibility(
        self,
        user_id: str,
        protocol_id: str,
        db: Optional[Session] = None
    ) -> models.UserSettings:
        """Hide a visible protocol or show a hidden one"""
        def _toggle(session: Session) -> models.UserSettings:
            row = self._get_or_create(session, user_id)
            hidden = {str(pid) for pid in (row.hidden_protocol_ids or [])}
            key = str(protocol_id)
            if key in hidden:
                hidden.remove(key)
            else:
                hidden.add(key)
            # Reassign so the JSON column is flagged dirty
            row.hidden_protocol_ids = sorted(hidden)

            session.commit()
            session.refresh(row)

            logger.info(f"Toggled visibility of protocol {protocol_id} for user {user_id}")
            return row

        if db:
            return _toggle(db)

        with get_db_context() as session:
            return _toggle(session)

    async def get_display_settings(
        self,
        user_id: str,
        db: Optional[Session] = None
    ) -> DisplaySettings:
        """Settings as an immutable value for the engine"""
        def _get(session: Session) -> DisplaySettings:
            return to_display_settings(self._get_or_create(session, user_id))

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)


# Singleton instance
settings_service = SettingsService()
