"""
In-Memory Storage

Used when Google Sheets isn't configured and in tests. Data lives as
long as the process does.
"""

from typing import Optional
from uuid import UUID

from clario.models.audit import AuditEvent
from clario.models.ledger import BooksSnapshot
from clario.services.storage.interface import AuditStorageInterface, BooksStorageInterface


class InMemoryBooksStorage(BooksStorageInterface):
    """Keeps a deep copy of the last saved snapshot."""

    def __init__(self):
        self._snapshot: Optional[BooksSnapshot] = None
        self.save_count = 0

    async def load_books(self) -> Optional[BooksSnapshot]:
        if self._snapshot is None:
            return None
        return self._snapshot.model_copy(deep=True)

    async def save_books(self, snapshot: BooksSnapshot) -> bool:
        self._snapshot = snapshot.model_copy(deep=True)
        self.save_count += 1
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
