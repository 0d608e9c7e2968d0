"""
Data Models Package

This package contains all Pydantic models used in the Budget Planner system.
All data flowing through the system must conform to these schemas.
"""

from src.models.budget import (
    Budget,
    BudgetSummary,
    Category,
    CategoryAllocation,
    CategoryCreate,
    CategoryPatch,
    CurrentUser,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Budget models
    "Budget",
    "BudgetSummary",
    "Category",
    "CategoryAllocation",
    "CategoryCreate",
    "CategoryPatch",
    "CurrentUser",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
