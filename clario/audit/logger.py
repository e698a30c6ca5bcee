"""
Audit Logger

DESIGN DECISION: Every change to the books is logged.
This provides:
1. Traceability from free text to recorded journal entries
2. Debugging capability when the AI proposes something odd
3. A history the user can read back in the AuditLog sheet

The audit logger:
- Is async to not block main flow
- Gracefully handles storage failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from clario.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from clario.services.storage.interface import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    @property
    def has_storage(self) -> bool:
        return self._storage is not None

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """
        Read back the newest events, newest first.

        Without storage there is nothing to read. A storage failure is
        logged and reads as an empty history.
        """
        if not self._storage:
            return []
        try:
            return await self._storage.get_recent_events(limit=limit)
        except Exception as e:
            self._logger.warning("audit_read_failed", error=str(e))
            return []

    async def related_events(self, correlation_id: UUID) -> list[AuditEvent]:
        """Read back every event of one user action, oldest first."""
        if not self._storage:
            return []
        try:
            return await self._storage.get_events_by_correlation_id(correlation_id)
        except Exception as e:
            self._logger.warning(
                "audit_read_failed",
                error=str(e),
                correlation_id=str(correlation_id),
            )
            return []

    async def log_extraction_requested(
        self,
        input_chars: int,
        project_id: Optional[UUID],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.extraction_requested(
            input_chars=input_chars,
            project_id=project_id,
            correlation_id=correlation_id,
        ))

    async def log_extraction_completed(
        self,
        accepted: int,
        rejected: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.extraction_completed(
            accepted=accepted,
            rejected=rejected,
            correlation_id=correlation_id,
        ))

    async def log_item_rejected(self, reason: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.item_rejected(reason, correlation_id))

    async def log_validation_failed(
        self,
        transaction_id: UUID,
        stage: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log validation failure."""
        event = AuditEventBuilder.validation_failed(
            transaction_id=transaction_id,
            stage=stage,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_recorded(
        self,
        transaction_id: UUID,
        vendor: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_recorded(
            transaction_id=transaction_id,
            vendor=vendor,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_document_created(
        self,
        entity_type: str,
        entity_id: UUID,
        number: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an invoice or bill being created."""
        event = AuditEventBuilder.document_created(
            entity_type=entity_type,
            entity_id=entity_id,
            number=number,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_books_changed(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: Optional[UUID],
        description: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.books_changed(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_advisor_query(
        self,
        assistant: str,
        question_chars: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.advisor_query(
            assistant=assistant,
            question_chars=question_chars,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a text submission).
    Pass it through all subsequent operations.
    """
    return uuid4()
