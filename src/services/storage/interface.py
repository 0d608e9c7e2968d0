"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the stores decoupled from the storage implementation

The interface is intentionally simple - just async CRUD keyed by
user_id (budgets) and id (categories).
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.budget import Budget, Category


class BudgetStorageInterface(ABC):
    """
    Abstract interface for budget storage.

    There is exactly one budget record per user.
    """

    @abstractmethod
    async def get_budget(self, user_id: str) -> Optional[Budget]:
        """
        Retrieve the budget of a user.

        Returns:
            The budget if one exists, None otherwise

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def save_budget(self, budget: Budget) -> bool:
        """
        Insert or replace the budget of budget.user_id.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass


class CategoryStorageInterface(ABC):
    """
    Abstract interface for category storage.
    """

    @abstractmethod
    async def list_categories(self, user_id: str) -> list[Category]:
        """
        List all categories owned by a user, in creation order.

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def save_category(self, category: Category) -> bool:
        """
        Save a new category.

        Raises:
            StorageError: If save fails
            DuplicateError: If the id already exists
        """
        pass

    @abstractmethod
    async def update_category(self, category: Category) -> bool:
        """
        Replace an existing category.

        Raises:
            StorageError: If update fails
            NotFoundError: If the category doesn't exist
        """
        pass

    @abstractmethod
    async def delete_category(self, category_id: UUID) -> bool:
        """
        Delete a category by ID.

        Returns:
            True if a record was deleted, False if none matched
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
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
