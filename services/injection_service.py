"""
Injection Service
Business logic for logging doses against protocols
"""

import logging
from typing import List, Optional, Tuple
from datetime import date, datetime
from sqlalchemy.orm import Session
from sqlalchemy import and_, desc

from database import get_db_context
import models
from tools.date_utils import start_of_day
from tools.optimistic_buffer import OptimisticBufferRegistry, optimistic_buffers
from tools.records import Injection


logger = logging.getLogger(__name__)


def to_injection_record(row: models.Injection) -> Injection:
    """Immutable snapshot of an injection row"""
    return Injection(
        id=str(row.id),
        # A deleted protocol leaves an id that resolves to nothing
        protocol_id=str(row.protocol_id) if row.protocol_id is not None else "",
        date=row.date,
        dose_ml=row.dose_ml,
        concentration_mg_per_ml=row.concentration_mg_per_ml,
        dose_mg=row.dose_mg,
        notes=row.notes or "",
        is_trashed=bool(row.is_trashed),
        created_at=row.created_at
    )


def _validate_dose(dose_ml: float, concentration_mg_per_ml: float) -> None:
    if dose_ml is None or dose_ml <= 0:
        raise ValueError("Dose (mL) must be positive")
    if concentration_mg_per_ml is None or concentration_mg_per_ml <= 0:
        raise ValueError("Concentration (mg/mL) must be positive")


class InjectionService:
    """
    Service for injection logging and history
    """

    def __init__(self, buffers: OptimisticBufferRegistry = optimistic_buffers):
        self.buffers = buffers

    async def log_injection(
        self,
        user_id: str,
        protocol_id: int,
        day: date,
        dose_ml: Optional[float] = None,
        concentration_mg_per_ml: Optional[float] = None,
        notes: Optional[str] = None,
        optimistic_id: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.Injection:
        """
        Log a dose

        Args:
            user_id: Owner of the log
            protocol_id: Protocol the dose belongs to
            day: Day the dose was taken
            dose_ml: Volume taken, defaults to the protocol's dose
            concentration_mg_per_ml: Defaults to the protocol's concentration
            notes: Free-form notes
            optimistic_id: Pending buffer entry to drop once the write settles
            db: Database session

        Returns:
            Created Injection row
        """
        def _log(session: Session) -> models.Injection:
            protocol = session.query(models.Protocol).filter(
                and_(
                    models.Protocol.id == protocol_id,
                    models.Protocol.user_id == user_id
                )
            ).first()
            if not protocol:
                raise ValueError(f"Protocol {protocol_id} not found for user {user_id}")

            ml = dose_ml if dose_ml is not None else protocol.dose_ml
            concentration = (
                concentration_mg_per_ml
                if concentration_mg_per_ml is not None
                else protocol.concentration_mg_per_ml
            )
            _validate_dose(ml, concentration)

            injection = models.Injection(
                user_id=user_id,
                protocol_id=protocol.id,
                date=start_of_day(day),
                dose_ml=ml,
                concentration_mg_per_ml=concentration,
                dose_mg=ml * concentration,
                notes=notes or ""
            )

            session.add(injection)
            session.commit()
            session.refresh(injection)

            logger.info(
                f"Logged injection {injection.id} for user {user_id}, "
                f"protocol {protocol.id} on {injection.date.isoformat()}"
            )
            return injection

        try:
            if db:
                return _log(db)

            with get_db_context() as session:
                return _log(session)
        finally:
            # Success or failure, the pending entry has served its purpose
            if optimistic_id:
                self.buffers.resolve(user_id, optimistic_id)

    async def get_injection(
        self,
        injection_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Injection]:
        """Get injection by ID"""
        def _get(session: Session) -> Optional[models.Injection]:
            return session.query(models.Injection).filter(
                models.Injection.id == injection_id
            ).first()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def list_injections(
        self,
        user_id: str,
        include_trashed: bool = False,
        protocol_id: Optional[int] = None,
        db: Optional[Session] = None
    ) -> List[models.Injection]:
        """Get a user's injections, most recent first"""
        def _list(session: Session) -> List[models.Injection]:
            query = session.query(models.Injection).filter(
                models.Injection.user_id == user_id
            )
            if not include_trashed:
                query = query.filter(models.Injection.is_trashed.is_(False))
            if protocol_id is not None:
                query = query.filter(models.Injection.protocol_id == protocol_id)
            return query.order_by(desc(models.Injection.date), desc(models.Injection.id)).all()

        if db:
            return _list(db)

        with get_db_context() as session:
            return _list(session)

    async def update_injection(
        self,
        injection_id: int,
        day: Optional[date] = None,
        dose_ml: Optional[float] = None,
        concentration_mg_per_ml: Optional[float] = None,
        notes: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.Injection:
        """Edit a log in place; dose_mg is recomputed from its inputs"""
        def _update(session: Session) -> models.Injection:
            injection = session.query(models.Injection).filter(
                models.Injection.id == injection_id
            ).first()
            if not injection:
                raise ValueError(f"Injection {injection_id} not found")

            ml = dose_ml if dose_ml is not None else injection.dose_ml
            concentration = (
                concentration_mg_per_ml
                if concentration_mg_per_ml is not None
                else injection.concentration_mg_per_ml
            )
            _validate_dose(ml, concentration)

            if day is not None:
                injection.date = start_of_day(day)
            if notes is not None:
                injection.notes = notes
            injection.dose_ml = ml
            injection.concentration_mg_per_ml = concentration
            injection.dose_mg = ml * concentration

            session.commit()
            session.refresh(injection)

            logger.info(f"Updated injection {injection_id}")
            return injection

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def set_trashed(
        self,
        injection_id: int,
        trashed: bool,
        db: Optional[Session] = None
    ) -> models.Injection:
        """Move an injection to or from the trash"""
        def _set(session: Session) -> models.Injection:
            injection = session.query(models.Injection).filter(
                models.Injection.id == injection_id
            ).first()
            if not injection:
                raise ValueError(f"Injection {injection_id} not found")

            injection.is_trashed = trashed
            injection.trashed_at = datetime.utcnow() if trashed else None

            session.commit()
            session.refresh(injection)

            logger.info(f"{'Trashed' if trashed else 'Restored'} injection {injection_id}")
            return injection

        if db:
            return _set(db)

        with get_db_context() as session:
            return _set(session)

    async def get_injection_snapshot(
        self,
        user_id: str,
        include_optimistic: bool = True,
        db: Optional[Session] = None
    ) -> Tuple[Injection, ...]:
        """
        Full-replace snapshot of a user's injections, trashed included,
        with pending optimistic entries first
        """
        def _snapshot(session: Session) -> Tuple[Injection, ...]:
            rows = session.query(models.Injection).filter(
                models.Injection.user_id == user_id
            ).order_by(desc(models.Injection.date)).all()
            return tuple(to_injection_record(row) for row in rows)

        if db:
            durable = _snapshot(db)
        else:
            with get_db_context() as session:
                durable = _snapshot(session)

        if not include_optimistic:
            return durable
        buffer = self.buffers.get(user_id)
        return buffer.merge(durable) if buffer is not None else durable

    # ==================== OPTIMISTIC ENTRIES ====================

    def add_optimistic(
        self,
        user_id: str,
        protocol_id: str,
        day: date,
        dose_ml: float,
        concentration_mg_per_ml: float,
        notes: Optional[str] = None
    ) -> Injection:
        """Register a pending injection and return it"""
        buffer = self.buffers.for_user(user_id)
        entry_id = buffer.add(
            protocol_id=str(protocol_id),
            day=day,
            dose_ml=dose_ml,
            concentration_mg_per_ml=concentration_mg_per_ml,
            notes=notes or ""
        )
        return buffer.get(entry_id)

    def resolve_optimistic(self, user_id: str, optimistic_id: str) -> bool:
        return self.buffers.resolve(user_id, optimistic_id)

    def list_optimistic(self, user_id: str) -> Tuple[Injection, ...]:
        return self.buffers.entries(user_id)


# Singleton instance
injection_service = InjectionService()
