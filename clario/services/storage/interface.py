"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep bookkeeping logic decoupled from storage implementation

Books live in memory for the session. Storage only ever sees whole
snapshots: load once at startup, save when the user asks.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from clario.models.audit import AuditEvent
from clario.models.ledger import BooksSnapshot


class BooksStorageInterface(ABC):
    """
    Abstract interface for books snapshot storage.

    Any storage implementation (Google Sheets, SQLite, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def load_books(self) -> Optional[BooksSnapshot]:
        """
        Load the last saved snapshot.

        Returns:
            The snapshot, or None if nothing was ever saved

        Raises:
            StorageError: If stored data can't be read
        """
        pass

    @abstractmethod
    async def save_books(self, snapshot: BooksSnapshot) -> bool:
        """
        Replace the stored books with this snapshot.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one text submission).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
