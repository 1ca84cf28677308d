"""
Snapshot Records
Immutable protocol and injection values consumed by the schedule engine
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class Protocol:
    """A recurring dosing rule"""
    id: str
    name: str
    start_date: date
    interval_days: float
    dose_ml: float
    concentration_mg_per_ml: float
    end_date: Optional[date] = None
    is_active: bool = False
    is_trashed: bool = False
    theme_key: Optional[str] = None
    notes: str = ""

    @property
    def dose_mg(self) -> float:
        return self.dose_ml * self.concentration_mg_per_ml


@dataclass(frozen=True)
class Injection:
    """One logged dose; protocol_id may no longer resolve"""
    id: str
    protocol_id: str
    date: date
    dose_ml: float
    concentration_mg_per_ml: float
    dose_mg: float
    notes: str = ""
    is_trashed: bool = False
    is_optimistic: bool = False
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class DisplaySettings:
    """Visibility preferences supplied by the host"""
    hidden_protocol_ids: Tuple[str, ...] = field(default_factory=tuple)
    focus_active_only: bool = False
    timezone: str = "UTC"
    default_protocol_id: Optional[str] = None


def effective_dose_mg(injection: Injection) -> float:
    """Persisted dose in mg, recomputed when the stored value is not finite"""
    dose = injection.dose_mg
    if isinstance(dose, (int, float)) and math.isfinite(dose):
        return float(dose)
    return injection.dose_ml * injection.concentration_mg_per_ml


def without_trashed(injections) -> Tuple[Injection, ...]:
    return tuple(i for i in injections if not i.is_trashed)
