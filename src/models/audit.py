"""
Audit Models for Budget Planner

Every budget and category mutation is logged for audit purposes.
This provides:
1. Traceability of what the user changed
2. Debugging information when persistence fails
3. A record of in-memory state that may have diverged from storage

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Loading
    BUDGET_LOADED = "budget_loaded"
    BUDGET_CREATED = "budget_created"
    LOAD_FAILED = "load_failed"

    # Budget mutations
    BUDGET_TOTAL_SET = "budget_total_set"

    # Category mutations
    CATEGORY_CREATED = "category_created"
    CATEGORY_CREATE_FAILED = "category_create_failed"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"

    # Allocation
    BUDGET_GENERATED = "budget_generated"
    ALLOCATION_MISMATCH = "allocation_mismatch"

    # Persistence
    PERSISTENCE_FAILED = "persistence_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context
    user_id: Optional[str] = Field(
        default=None,
        description="User whose data was touched"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('budget' or 'category')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one Generate Budget click)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.category_created(user_id, category_id, name)
        event = AuditEventBuilder.persistence_failed("update", "category", ...)
    """

    @staticmethod
    def budget_loaded(
        user_id: str,
        total_amount: int,
        category_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_LOADED,
            user_id=user_id,
            entity_type="budget",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Loaded budget with {category_count} categories",
            details={
                "total_amount": total_amount,
                "category_count": category_count,
            },
        )

    @staticmethod
    def budget_created(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CREATED,
            user_id=user_id,
            entity_type="budget",
            entity_id=user_id,
            description="Created empty budget for new user",
        )

    @staticmethod
    def load_failed(
        user_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Could not load budget data, showing empty state",
            error_message=error_message,
        )

    @staticmethod
    def budget_total_set(
        user_id: str,
        previous: int,
        total_amount: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_TOTAL_SET,
            user_id=user_id,
            entity_type="budget",
            entity_id=user_id,
            description=f"Total budget changed from {previous} to {total_amount}",
            details={
                "previous": previous,
                "total_amount": total_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def category_created(
        user_id: str,
        category_id: UUID,
        name: str,
        current_amount: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_CREATED,
            user_id=user_id,
            entity_type="category",
            entity_id=str(category_id),
            description=f"Category created: {name}",
            details={
                "name": name,
                "current_amount": current_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def category_create_failed(
        user_id: str,
        name: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_CREATE_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="category",
            description=f"Category not created: {name or '<empty name>'}",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def category_updated(
        user_id: str,
        category_id: UUID,
        changes: dict,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_UPDATED,
            user_id=user_id,
            entity_type="category",
            entity_id=str(category_id),
            correlation_id=correlation_id,
            description=f"Category updated: {', '.join(sorted(changes))}",
            details={"changes": changes},
            is_user_action=True,
        )

    @staticmethod
    def category_deleted(user_id: str, category_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            user_id=user_id,
            entity_type="category",
            entity_id=str(category_id),
            description="Category deleted",
            is_user_action=True,
        )

    @staticmethod
    def budget_generated(
        user_id: str,
        total_amount: int,
        allocations: list[dict],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_GENERATED,
            user_id=user_id,
            entity_type="budget",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Generated budget across {len(allocations)} categories",
            details={
                "total_amount": total_amount,
                "allocations": allocations,
            },
            is_user_action=True,
        )

    @staticmethod
    def allocation_mismatch(
        user_id: str,
        total_amount: int,
        allocated: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALLOCATION_MISMATCH,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="budget",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"Allocated {allocated} of a {total_amount} budget",
            details={
                "total_amount": total_amount,
                "allocated": allocated,
                "difference": allocated - total_amount,
            },
        )

    @staticmethod
    def persistence_failed(
        operation: str,
        entity_type: str,
        entity_id: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Persisting {operation} failed; in-memory state kept",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
