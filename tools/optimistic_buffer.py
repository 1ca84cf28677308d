"""
Optimistic Buffer
Holds not-yet-persisted injections so they show up before the write lands
"""

import logging
import threading
import time
import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from config import settings
from tools.date_utils import DateLike, start_of_day
from tools.records import Injection


logger = logging.getLogger(__name__)


def create_optimistic_id() -> str:
    """Local id that can never collide with a durable (numeric) id"""
    return f"{settings.OPTIMISTIC_ID_PREFIX}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}"


def is_optimistic_id(entry_id: str) -> bool:
    return str(entry_id).startswith(f"{settings.OPTIMISTIC_ID_PREFIX}-")


class OptimisticBuffer:
    """
    Caller-owned set of pending injections.

    Entries stay until resolve() removes them; the buffer never expires
    anything on its own.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: List[Injection] = []

    def add(
        self,
        protocol_id: str,
        day: DateLike,
        dose_ml: float,
        concentration_mg_per_ml: float,
        notes: str = ""
    ) -> str:
        entry = Injection(
            id=create_optimistic_id(),
            protocol_id=str(protocol_id),
            date=start_of_day(day),
            dose_ml=dose_ml,
            concentration_mg_per_ml=concentration_mg_per_ml,
            dose_mg=dose_ml * concentration_mg_per_ml,
            notes=notes or "",
            is_optimistic=True
        )
        with self._lock:
            self._entries.insert(0, entry)
        logger.debug(f"Buffered optimistic injection {entry.id}")
        return entry.id

    def resolve(self, entry_id: str) -> bool:
        """Remove an entry once its durable write succeeded or failed"""
        with self._lock:
            before = len(self._entries)
            self._entries = [e for e in self._entries if e.id != entry_id]
            removed = len(self._entries) != before
        if removed:
            logger.debug(f"Resolved optimistic injection {entry_id}")
        return removed

    def get(self, entry_id: str) -> Optional[Injection]:
        with self._lock:
            return next((e for e in self._entries if e.id == entry_id), None)

    def entries(self) -> Tuple[Injection, ...]:
        """Snapshot, newest first"""
        with self._lock:
            return tuple(self._entries)

    def merge(self, durable: Iterable[Injection]) -> Tuple[Injection, ...]:
        """Optimistic entries followed by durable records"""
        return self.entries() + tuple(durable)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class OptimisticBufferRegistry:
    """One buffer per user for the HTTP layer"""

    def __init__(self):
        self._lock = threading.Lock()
        self._buffers: Dict[str, OptimisticBuffer] = {}

    def for_user(self, user_id: str) -> OptimisticBuffer:
        """Buffer for user_id, created on first write"""
        with self._lock:
            buffer = self._buffers.get(user_id)
            if buffer is None:
                buffer = OptimisticBuffer()
                self._buffers[user_id] = buffer
            return buffer

    def get(self, user_id: str) -> Optional[OptimisticBuffer]:
        """Existing buffer for user_id; reads never create one"""
        with self._lock:
            return self._buffers.get(user_id)

    def entries(self, user_id: str) -> Tuple[Injection, ...]:
        buffer = self.get(user_id)
        return buffer.entries() if buffer is not None else ()

    def resolve(self, user_id: str, entry_id: str) -> bool:
        buffer = self.get(user_id)
        return buffer.resolve(entry_id) if buffer is not None else False

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffers)

    def clear(self) -> None:
        with self._lock:
            self._buffers.clear()


# Singleton instance
optimistic_buffers = OptimisticBufferRegistry()
