"""
In-Memory Storage Implementation

Default backend when Google Sheets is not configured, and the
test double for the stores.

Each storage accepts a set of operation names to fail on
(e.g. {"update"}) so tests can exercise persistence failures.
"""

from typing import Iterable, Optional
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.budget import Budget, Category
from src.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    CategoryStorageInterface,
    DuplicateError,
    NotFoundError,
    StorageError,
)


class _FailureInjection:
    """Raise StorageError for the configured operation names."""

    def __init__(self, fail_on: Optional[Iterable[str]] = None):
        self.fail_on: set[str] = set(fail_on or ())

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise StorageError(f"Simulated failure during {operation}")


class InMemoryBudgetStorage(_FailureInjection, BudgetStorageInterface):
    """Budgets kept in a dict keyed by user_id."""

    def __init__(self, fail_on: Optional[Iterable[str]] = None):
        super().__init__(fail_on)
        self._budgets: dict[str, Budget] = {}

    async def get_budget(self, user_id: str) -> Optional[Budget]:
        self._check("get")
        budget = self._budgets.get(user_id)
        return budget.model_copy() if budget else None

    async def save_budget(self, budget: Budget) -> bool:
        self._check("save")
        self._budgets[budget.user_id] = budget.model_copy()
        return True


class InMemoryCategoryStorage(_FailureInjection, CategoryStorageInterface):
    """Categories kept in an insertion-ordered dict keyed by id."""

    def __init__(self, fail_on: Optional[Iterable[str]] = None):
        super().__init__(fail_on)
        self._categories: dict[UUID, Category] = {}

    async def list_categories(self, user_id: str) -> list[Category]:
        self._check("list")
        return [
            category.model_copy()
            for category in self._categories.values()
            if category.user_id == user_id
        ]

    async def save_category(self, category: Category) -> bool:
        self._check("save")
        if category.id in self._categories:
            raise DuplicateError(f"Category already exists: {category.id}")
        self._categories[category.id] = category.model_copy()
        return True

    async def update_category(self, category: Category) -> bool:
        self._check("update")
        if category.id not in self._categories:
            raise NotFoundError(f"Category not found: {category.id}")
        self._categories[category.id] = category.model_copy()
        return True

    async def delete_category(self, category_id: UUID) -> bool:
        self._check("delete")
        return self._categories.pop(category_id, None) is not None


class InMemoryAuditStorage(_FailureInjection, AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self, fail_on: Optional[Iterable[str]] = None):
        super().__init__(fail_on)
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._check("append")
        self.events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
