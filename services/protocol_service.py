"""
Protocol Service
Business logic for dosing protocol management
"""

import logging
from typing import List, Optional, Tuple
from datetime import date, datetime
from sqlalchemy.orm import Session
from sqlalchemy import and_

from database import get_db_context
import models
from tools.records import Protocol
from tools.schedule_generator import is_valid_interval


logger = logging.getLogger(__name__)


_UPDATABLE_FIELDS = (
    "name", "notes", "theme_key", "start_date", "end_date",
    "interval_days", "dose_ml", "concentration_mg_per_ml"
)


def to_protocol_record(row: models.Protocol) -> Protocol:
    """Immutable snapshot of a protocol row"""
    return Protocol(
        id=str(row.id),
        name=row.name,
        start_date=row.start_date,
        end_date=row.end_date,
        interval_days=row.interval_days,
        dose_ml=row.dose_ml,
        concentration_mg_per_ml=row.concentration_mg_per_ml,
        is_active=bool(row.is_active),
        is_trashed=bool(row.is_trashed),
        theme_key=row.theme_key,
        notes=row.notes or ""
    )


def validate_protocol_fields(
    interval_days: float,
    dose_ml: float,
    concentration_mg_per_ml: float,
    start_date: date,
    end_date: Optional[date] = None
) -> None:
    """Raise ValueError for values the schedule cannot honor"""
    if not is_valid_interval(interval_days):
        raise ValueError(
            f"Interval must be at least 0.5 days in half-day steps, got {interval_days}"
        )
    if dose_ml is None or dose_ml <= 0:
        raise ValueError("Dose (mL) must be positive")
    if concentration_mg_per_ml is None or concentration_mg_per_ml <= 0:
        raise ValueError("Concentration (mg/mL) must be positive")
    if end_date is not None and end_date < start_date:
        raise ValueError("End date cannot be before start date")


class ProtocolService:
    """
    Service for dosing protocol management
    """

    def _deactivate_others(
        self,
        session: Session,
        user_id: str,
        keep_id: Optional[int] = None,
        end_date: Optional[date] = None
    ) -> List[models.Protocol]:
        """Clear is_active on the user's other protocols"""
        query = session.query(models.Protocol).filter(
            and_(
                models.Protocol.user_id == user_id,
                models.Protocol.is_active.is_(True)
            )
        )
        if keep_id is not None:
            query = query.filter(models.Protocol.id != keep_id)

        deactivated = query.all()
        for protocol in deactivated:
            protocol.is_active = False
            if end_date is not None:
                protocol.end_date = end_date
        return deactivated

    async def create_protocol(
        self,
        user_id: str,
        name: str,
        start_date: date,
        interval_days: float,
        dose_ml: float,
        concentration_mg_per_ml: float,
        end_date: Optional[date] = None,
        notes: Optional[str] = None,
        theme_key: Optional[str] = None,
        is_active: bool = False,
        db: Optional[Session] = None
    ) -> models.Protocol:
        """
        Create a dosing protocol

        Args:
            user_id: Owner of the protocol
            name: Display name
            start_date: First scheduled day
            interval_days: Days between doses (half-day steps)
            dose_ml: Volume per dose
            concentration_mg_per_ml: Concentration of the compound
            end_date: Last day the protocol may fire (inclusive)
            notes: Free-form notes
            theme_key: Presentation key
            is_active: Make this the user's only active protocol
            db: Database session

        Returns:
            Created Protocol row
        """
        validate_protocol_fields(interval_days, dose_ml, concentration_mg_per_ml, start_date, end_date)

        def _create(session: Session) -> models.Protocol:
            if is_active:
                self._deactivate_others(session, user_id)

            protocol = models.Protocol(
                user_id=user_id,
                name=name,
                start_date=start_date,
                end_date=end_date,
                interval_days=interval_days,
                dose_ml=dose_ml,
                concentration_mg_per_ml=concentration_mg_per_ml,
                notes=notes or "",
                theme_key=theme_key,
                is_active=is_active
            )

            session.add(protocol)
            session.commit()
            session.refresh(protocol)

            logger.info(f"Created protocol {protocol.id} ({name}) for user {user_id}")
            return protocol

        if db:
            return _create(db)

        with get_db_context() as session:
            return _create(session)

    async def create_or_restart_protocol(
        self,
        user_id: str,
        name: str,
        start_date: date,
        interval_days: float,
        dose_ml: float,
        concentration_mg_per_ml: float,
        notes: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.Protocol:
        """
        Start a new active protocol, closing the current one.

        Previously active protocols are deactivated and ended on the new
        start date; the new protocol becomes the user's default.
        """
        validate_protocol_fields(interval_days, dose_ml, concentration_mg_per_ml, start_date)

        def _restart(session: Session) -> models.Protocol:
            closed = self._deactivate_others(session, user_id, end_date=start_date)

            protocol = models.Protocol(
                user_id=user_id,
                name=name,
                start_date=start_date,
                end_date=None,
                interval_days=interval_days,
                dose_ml=dose_ml,
                concentration_mg_per_ml=concentration_mg_per_ml,
                notes=notes or "",
                is_active=True
            )
            session.add(protocol)
            session.flush()

            user_settings = session.query(models.UserSettings).filter(
                models.UserSettings.user_id == user_id
            ).first()
            if user_settings is None:
                user_settings = models.UserSettings(user_id=user_id, hidden_protocol_ids=[])
                session.add(user_settings)
            user_settings.default_protocol_id = protocol.id

            session.commit()
            session.refresh(protocol)

            logger.info(
                f"Restarted protocol for user {user_id}: new {protocol.id}, "
                f"closed {[p.id for p in closed]}"
            )
            return protocol

        if db:
            return _restart(db)

        with get_db_context() as session:
            return _restart(session)

    async def get_protocol(
        self,
        protocol_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Protocol]:
        """Get protocol by ID"""
        def _get(session: Session) -> Optional[models.Protocol]:
            return session.query(models.Protocol).filter(
                models.Protocol.id == protocol_id
            ).first()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def list_protocols(
        self,
        user_id: str,
        include_trashed: bool = True,
        db: Optional[Session] = None
    ) -> List[models.Protocol]:
        """Get a user's protocols, newest start first"""
        def _list(session: Session) -> List[models.Protocol]:
            query = session.query(models.Protocol).filter(
                models.Protocol.user_id == user_id
            )
            if not include_trashed:
                query = query.filter(models.Protocol.is_trashed.is_(False))
            return query.order_by(models.Protocol.start_date.desc()).all()

        if db:
            return _list(db)

        with get_db_context() as session:
            return _list(session)

    async def update_protocol(
        self,
        protocol_id: int,
        db: Optional[Session] = None,
        **updates
    ) -> models.Protocol:
        """Update editable protocol fields; None values are ignored"""
        def _update(session: Session) -> models.Protocol:
            protocol = session.query(models.Protocol).filter(
                models.Protocol.id == protocol_id
            ).first()
            if not protocol:
                raise ValueError(f"Protocol {protocol_id} not found")

            for field_name in _UPDATABLE_FIELDS:
                if updates.get(field_name) is not None:
                    setattr(protocol, field_name, updates[field_name])
            if updates.get("clear_end_date"):
                protocol.end_date = None

            try:
                validate_protocol_fields(
                    protocol.interval_days,
                    protocol.dose_ml,
                    protocol.concentration_mg_per_ml,
                    protocol.start_date,
                    protocol.end_date
                )
            except ValueError:
                session.rollback()
                raise

            session.commit()
            session.refresh(protocol)

            logger.info(f"Updated protocol {protocol_id}")
            return protocol

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def set_active(
        self,
        protocol_id: int,
        db: Optional[Session] = None
    ) -> models.Protocol:
        """Make a protocol the user's only active one"""
        def _activate(session: Session) -> models.Protocol:
            protocol = session.query(models.Protocol).filter(
                models.Protocol.id == protocol_id
            ).first()
            if not protocol:
                raise ValueError(f"Protocol {protocol_id} not found")
            if protocol.is_trashed:
                raise ValueError(f"Protocol {protocol_id} is in the trash")

            self._deactivate_others(session, protocol.user_id, keep_id=protocol.id)
            protocol.is_active = True

            session.commit()
            session.refresh(protocol)

            logger.info(f"Activated protocol {protocol_id} for user {protocol.user_id}")
            return protocol

        if db:
            return _activate(db)

        with get_db_context() as session:
            return _activate(session)

    async def trash_protocol(
        self,
        protocol_id: int,
        db: Optional[Session] = None
    ) -> models.Protocol:
        """Soft-delete a protocol; its injections are kept"""
        def _trash(session: Session) -> models.Protocol:
            protocol = session.query(models.Protocol).filter(
                models.Protocol.id == protocol_id
            ).first()
            if not protocol:
                raise ValueError(f"Protocol {protocol_id} not found")

            protocol.is_trashed = True
            protocol.is_active = False
            protocol.trashed_at = datetime.utcnow()

            session.commit()
            session.refresh(protocol)

            logger.info(f"Trashed protocol {protocol_id}")
            return protocol

        if db:
            return _trash(db)

        with get_db_context() as session:
            return _trash(session)

    async def restore_protocol(
        self,
        protocol_id: int,
        db: Optional[Session] = None
    ) -> models.Protocol:
        """Bring a trashed protocol back (inactive)"""
        def _restore(session: Session) -> models.Protocol:
            protocol = session.query(models.Protocol).filter(
                models.Protocol.id == protocol_id
            ).first()
            if not protocol:
                raise ValueError(f"Protocol {protocol_id} not found")

            protocol.is_trashed = False
            protocol.trashed_at = None

            session.commit()
            session.refresh(protocol)

            logger.info(f"Restored protocol {protocol_id}")
            return protocol

        if db:
            return _restore(db)

        with get_db_context() as session:
            return _restore(session)

    async def get_protocol_snapshot(
        self,
        user_id: str,
        db: Optional[Session] = None
    ) -> Tuple[Protocol, ...]:
        """Full-replace snapshot of a user's protocols, trashed included"""
        def _snapshot(session: Session) -> Tuple[Protocol, ...]:
            rows = session.query(models.Protocol).filter(
                models.Protocol.user_id == user_id
            ).all()
            return tuple(to_protocol_record(row) for row in rows)

        if db:
            return _snapshot(db)

        with get_db_context() as session:
            return _snapshot(session)


# Singleton instance
protocol_service = ProtocolService()
