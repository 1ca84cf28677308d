"""
Database Models
SQLAlchemy ORM models for DoseCadence
"""

from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, ForeignKey, Text, Date, Index, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from config import TableNames
from database import Base


# ==================== MODELS ====================

class Protocol(Base):
    """Recurring dosing rule: start date, interval, optional end date and dose"""
    __tablename__ = TableNames.PROTOCOLS

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    notes = Column(Text, default="")
    theme_key = Column(String(50))

    # Schedule rule
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)  # Inclusive upper bound
    interval_days = Column(Float, nullable=False)  # Half-day increments

    # Dose
    dose_ml = Column(Float, nullable=False)
    concentration_mg_per_ml = Column(Float, nullable=False)

    # Status
    is_active = Column(Boolean, default=False, nullable=False)
    is_trashed = Column(Boolean, default=False, nullable=False)
    trashed_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    injections = relationship("Injection", back_populates="protocol")

    __table_args__ = (
        Index("ix_protocols_user_active", "user_id", "is_active"),
    )

    @property
    def dose_mg(self) -> float:
        return self.dose_ml * self.concentration_mg_per_ml


class Injection(Base):
    """One logged dose on a specific day"""
    __tablename__ = TableNames.INJECTIONS

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)

    # Weak reference: the protocol may later be trashed
    protocol_id = Column(Integer, ForeignKey("protocols.id", ondelete="SET NULL"))

    date = Column(Date, nullable=False)

    # Dose as logged, kept even if the protocol's dose changes later
    dose_ml = Column(Float, nullable=False)
    concentration_mg_per_ml = Column(Float, nullable=False)
    dose_mg = Column(Float, nullable=False)

    notes = Column(Text, default="")

    is_trashed = Column(Boolean, default=False, nullable=False)
    trashed_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    protocol = relationship("Protocol", back_populates="injections")

    __table_args__ = (
        Index("ix_injections_user_date", "user_id", "date"),
    )


class UserSettings(Base):
    """Per-user display settings consumed by the calendar"""
    __tablename__ = TableNames.USER_SETTINGS

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), unique=True, nullable=False, index=True)

    # Stored for display only, never used for conversion
    timezone = Column(String(64), default="UTC")
    default_protocol_id = Column(Integer)

    hidden_protocol_ids = Column(JSON, default=list)
    focus_active_only = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
