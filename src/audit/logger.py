"""
Audit Logger

DESIGN DECISION: Every budget and category mutation is logged.
This provides:
1. Traceability of user edits
2. A visible record when persistence fails and in-memory state goes stale
3. Debugging capability

The audit logger:
- Is async so it composes with the stores
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder
from src.services.storage import AuditStorageInterface


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
    2. Audit storage, if one is configured
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
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_budget_loaded(
        self,
        user_id: str,
        total_amount: int,
        category_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful load."""
        await self.log(AuditEventBuilder.budget_loaded(
            user_id=user_id,
            total_amount=total_amount,
            category_count=category_count,
            correlation_id=correlation_id,
        ))

    async def log_budget_created(self, user_id: str) -> None:
        """Log lazy creation of an empty budget."""
        await self.log(AuditEventBuilder.budget_created(user_id))

    async def log_load_failed(
        self,
        user_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a load failure (UI falls back to empty state)."""
        await self.log(AuditEventBuilder.load_failed(
            user_id=user_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_budget_total_set(
        self,
        user_id: str,
        previous: int,
        total_amount: int,
    ) -> None:
        """Log a total budget edit."""
        await self.log(AuditEventBuilder.budget_total_set(
            user_id=user_id,
            previous=previous,
            total_amount=total_amount,
        ))

    async def log_category_created(
        self,
        user_id: str,
        category_id: UUID,
        name: str,
        current_amount: int,
    ) -> None:
        """Log category creation."""
        await self.log(AuditEventBuilder.category_created(
            user_id=user_id,
            category_id=category_id,
            name=name,
            current_amount=current_amount,
        ))

    async def log_category_create_failed(
        self,
        user_id: str,
        name: str,
        error_message: str,
    ) -> None:
        """Log a rejected or unpersisted category."""
        await self.log(AuditEventBuilder.category_create_failed(
            user_id=user_id,
            name=name,
            error_message=error_message,
        ))

    async def log_category_updated(
        self,
        user_id: str,
        category_id: UUID,
        changes: dict,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a category patch."""
        await self.log(AuditEventBuilder.category_updated(
            user_id=user_id,
            category_id=category_id,
            changes=changes,
            correlation_id=correlation_id,
        ))

    async def log_category_deleted(self, user_id: str, category_id: UUID) -> None:
        """Log category deletion."""
        await self.log(AuditEventBuilder.category_deleted(user_id, category_id))

    async def log_budget_generated(
        self,
        user_id: str,
        total_amount: int,
        allocations: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a Generate Budget run."""
        await self.log(AuditEventBuilder.budget_generated(
            user_id=user_id,
            total_amount=total_amount,
            allocations=allocations,
            correlation_id=correlation_id,
        ))

    async def log_allocation_mismatch(
        self,
        user_id: str,
        total_amount: int,
        allocated: int,
        correlation_id: UUID,
    ) -> None:
        """Log that allocations don't add up to the budget."""
        await self.log(AuditEventBuilder.allocation_mismatch(
            user_id=user_id,
            total_amount=total_amount,
            allocated=allocated,
            correlation_id=correlation_id,
        ))

    async def log_persistence_failed(
        self,
        operation: str,
        entity_type: str,
        entity_id: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a failed write after an optimistic mutation."""
        await self.log(AuditEventBuilder.persistence_failed(
            operation=operation,
            entity_type=entity_type,
            entity_id=entity_id,
            error_message=error_message,
            user_id=user_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., Generate Budget).
    Pass it through all subsequent operations.
    """
    return uuid4()
