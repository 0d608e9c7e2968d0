"""
Budget Session for Budget Planner

This module ties the stores, the allocation engine and the metrics
together and defines the flows the dashboard calls:
1. Load (user → budget + categories, or empty state on failure)
2. Edit (total, add/update/delete category, +/- step)
3. Generate Budget (allocate → one store update per category)

DESIGN DECISION: One BudgetSession per user session, built by
create_session(). Nothing here is a module-level singleton.
"""

from typing import Optional
from uuid import UUID

import structlog

from src.audit import AuditLogger, create_correlation_id
from src.config import get_settings
from src.engine import allocate, allocated_total, budget_summary, decrement, increment
from src.engine.metrics import ADJUSTMENT_STEP
from src.models.budget import (
    Budget,
    BudgetSummary,
    Category,
    CategoryAllocation,
    CategoryCreate,
    CategoryPatch,
    CurrentUser,
)
from src.services.storage import (
    AuditStorageInterface,
    BudgetStorageInterface,
    CategoryStorageInterface,
    InMemoryBudgetStorage,
    InMemoryCategoryStorage,
)
from src.stores import BudgetStore, CategoryStore, LoadError, MutationOutcome

logger = structlog.get_logger(__name__)


class BudgetSession:
    """
    One user's view of their budget.

    The budget and category stores are injected so tests and the
    dashboard can each wire their own backends.
    """

    def __init__(
        self,
        budget_store: BudgetStore,
        category_store: CategoryStore,
        audit_logger: Optional[AuditLogger] = None,
        adjustment_step: int = ADJUSTMENT_STEP,
    ):
        self._budget_store = budget_store
        self._category_store = category_store
        self._audit_logger = audit_logger or AuditLogger()
        self._adjustment_step = adjustment_step
        self._user: Optional[CurrentUser] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def user(self) -> Optional[CurrentUser]:
        return self._user

    @property
    def budget(self) -> Optional[Budget]:
        return self._budget_store.budget

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._category_store.categories

    @property
    def has_stale_state(self) -> bool:
        """True if any write failed since the last load."""
        return self._budget_store.has_stale_state or self._category_store.has_stale_state

    @property
    def failed_mutations(self) -> list[MutationOutcome]:
        return self._budget_store.failed_mutations + self._category_store.failed_mutations

    def summary(self) -> BudgetSummary:
        """Metrics for the current state; cheap enough for every render."""
        return budget_summary(self.budget, self.categories)

    # -------------------------------------------------------------------------
    # Load
    # -------------------------------------------------------------------------

    async def load(self, user: Optional[CurrentUser]) -> bool:
        """
        Load the user's budget and categories.

        No user means no data to load. A failed load is logged and
        leaves the category list empty rather than raising.

        Returns:
            True if both budget and categories were loaded
        """
        self._user = user
        if user is None:
            return False

        correlation_id = create_correlation_id()
        try:
            budget = await self._budget_store.fetch(user.id)
            categories = await self._category_store.fetch(user.id)
        except LoadError as e:
            # A budget failure never reaches the category fetch
            self._category_store.clear()
            await self._audit_logger.log_load_failed(
                user_id=user.id,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return False

        await self._audit_logger.log_budget_loaded(
            user_id=user.id,
            total_amount=budget.total_amount,
            category_count=len(categories),
            correlation_id=correlation_id,
        )
        return True

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    async def set_total(self, amount) -> Budget:
        """Change the total budget (see BudgetStore.set_total)."""
        return await self._budget_store.set_total(amount)

    async def add_category(
        self,
        name: str,
        current_amount: int = 0,
        min_amount: int = 0,
        max_amount: int = 0,
        is_fixed: bool = False,
    ) -> Category:
        """
        Create a category for the current user.

        Raises:
            CreateError: Empty name or failed write
            ValueError: No user loaded
        """
        if self._user is None:
            raise ValueError("No user loaded")
        return await self._category_store.create(CategoryCreate(
            user_id=self._user.id,
            name=name,
            current_amount=current_amount,
            min_amount=min_amount,
            max_amount=max_amount,
            is_fixed=is_fixed,
        ))

    async def update_category(
        self,
        category_id: UUID,
        patch: CategoryPatch,
    ) -> Optional[Category]:
        return await self._category_store.update(category_id, patch)

    async def delete_category(self, category_id: UUID) -> bool:
        return await self._category_store.delete(category_id)

    async def increment_category(self, category_id: UUID) -> Optional[Category]:
        """Add one step to a category's current amount."""
        category = self._category_store.get(category_id)
        if category is None:
            return None
        return await self._category_store.update(
            category_id,
            CategoryPatch(current_amount=increment(category, self._adjustment_step)),
        )

    async def decrement_category(self, category_id: UUID) -> Optional[Category]:
        """
        Remove one step from a category's current amount.

        Amounts below one step are left alone and nothing is written.
        """
        category = self._category_store.get(category_id)
        if category is None:
            return None
        new_amount = decrement(category, self._adjustment_step)
        if new_amount == category.current_amount:
            return category
        return await self._category_store.update(
            category_id,
            CategoryPatch(current_amount=new_amount),
        )

    # -------------------------------------------------------------------------
    # Generate Budget
    # -------------------------------------------------------------------------

    async def generate_budget(self) -> list[CategoryAllocation]:
        """
        Allocate the total budget across all categories and apply it.

        Each allocation is an independent store update. A failed write
        does not stop the rest.

        Returns:
            The allocations, or [] if no user/budget is loaded
        """
        budget = self.budget
        if self._user is None or budget is None:
            return []

        correlation_id = create_correlation_id()
        allocations = allocate(budget.total_amount, self.categories)

        for allocation in allocations:
            await self._category_store.update(
                allocation.category_id,
                allocation.to_patch(),
                correlation_id=correlation_id,
            )

        await self._audit_logger.log_budget_generated(
            user_id=self._user.id,
            total_amount=budget.total_amount,
            allocations=[
                allocation.model_dump(mode="json") for allocation in allocations
            ],
            correlation_id=correlation_id,
        )

        allocated = allocated_total(allocations)
        if allocations and allocated != budget.total_amount:
            await self._audit_logger.log_allocation_mismatch(
                user_id=self._user.id,
                total_amount=budget.total_amount,
                allocated=allocated,
                correlation_id=correlation_id,
            )
        return allocations


def create_session(
    use_storage: bool = True,
    budget_storage: Optional[BudgetStorageInterface] = None,
    category_storage: Optional[CategoryStorageInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> BudgetSession:
    """
    Factory function to build a BudgetSession.

    Args:
        use_storage: Whether to use the configured persistent backend.
                    Set to False (or leave storage_backend=memory) to keep
                    everything in memory.
        budget_storage, category_storage, audit_storage:
                    Explicit backends; override the configured ones.

    Returns:
        A BudgetSession with its own stores
    """
    app_settings = get_settings().app

    if use_storage and app_settings.storage_backend == "google_sheets" and (
        budget_storage is None or category_storage is None
    ):
        try:
            from src.services.storage.google_sheets import (
                GoogleSheetsAuditStorage,
                GoogleSheetsBudgetStorage,
                GoogleSheetsCategoryStorage,
                GoogleSheetsClient,
            )

            sheets_client = GoogleSheetsClient()
            budget_storage = budget_storage or GoogleSheetsBudgetStorage(sheets_client)
            category_storage = category_storage or GoogleSheetsCategoryStorage(sheets_client)
            audit_storage = audit_storage or GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))

    audit_logger = AuditLogger(audit_storage)
    budget_storage = budget_storage or InMemoryBudgetStorage()
    category_storage = category_storage or InMemoryCategoryStorage()

    return BudgetSession(
        budget_store=BudgetStore(budget_storage, audit_logger),
        category_store=CategoryStore(category_storage, audit_logger),
        audit_logger=audit_logger,
        adjustment_step=app_settings.adjustment_step,
    )
