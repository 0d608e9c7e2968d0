"""
Budget Store

Holds the single total budget of one user. Users without a stored
budget get a zero budget that is persisted on first fetch.
"""

import math
from decimal import Decimal
from numbers import Real
from typing import Optional, Union

from src.audit import AuditLogger
from src.engine.allocation import round_currency
from src.models.budget import Budget
from src.services.storage import BudgetStorageInterface, StorageError
from src.stores.errors import (
    FailureCallback,
    LoadError,
    MutationOperation,
    MutationOutcome,
    UpdateError,
)


class BudgetStore:
    """
    In-memory budget for a single user.

    set_total() is optimistic like the category store: the new total
    is kept even if the write fails.
    """

    def __init__(
        self,
        storage: BudgetStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        on_failure: Optional[FailureCallback] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._on_failure = on_failure
        self._budget: Optional[Budget] = None
        self.failed_mutations: list[MutationOutcome] = []

    @property
    def budget(self) -> Optional[Budget]:
        """The loaded budget, or None before fetch()."""
        return self._budget

    @property
    def has_stale_state(self) -> bool:
        return bool(self.failed_mutations)

    async def fetch(self, user_id: str) -> Budget:
        """
        Load the user's budget, creating a zero budget if none exists.

        Raises:
            LoadError: If storage can't be read
        """
        self.failed_mutations = []
        try:
            budget = await self._storage.get_budget(user_id)
        except StorageError as e:
            self._budget = None
            raise LoadError(f"Failed to load budget for {user_id}: {e}") from e

        if budget is None:
            budget = Budget(user_id=user_id, total_amount=0)
            self._budget = budget
            if await self._persist(MutationOperation.CREATE_BUDGET):
                await self._audit_logger.log_budget_created(user_id)
        else:
            self._budget = budget
        return budget

    async def set_total(self, amount: Union[Real, Decimal]) -> Budget:
        """
        Replace the total budget.

        Args:
            amount: Non-negative int, float or Decimal; fractional
                    amounts are rounded to whole currency units

        Raises:
            ValueError: For negative, boolean or non-numeric input,
                        or when no budget has been loaded
        """
        if isinstance(amount, bool) or not isinstance(amount, (Real, Decimal)):
            raise ValueError(f"Total budget must be a number, got {amount!r}")
        if not math.isfinite(amount):
            raise ValueError(f"Total budget must be finite, got {amount}")
        if amount < 0:
            raise ValueError(f"Total budget cannot be negative, got {amount}")
        if self._budget is None:
            raise ValueError("No budget loaded; call fetch() first")

        previous = self._budget.total_amount
        self._budget = self._budget.model_copy(
            update={"total_amount": round_currency(amount)}
        )
        await self._audit_logger.log_budget_total_set(
            user_id=self._budget.user_id,
            previous=previous,
            total_amount=self._budget.total_amount,
        )
        await self._persist(MutationOperation.SET_TOTAL)
        return self._budget

    async def _persist(self, operation: MutationOperation) -> bool:
        """Write the current budget; failures are recorded, not raised."""
        try:
            await self._storage.save_budget(self._budget)
        except StorageError as e:
            error = UpdateError(f"Failed to persist budget: {e}")
            outcome = MutationOutcome(
                operation=operation,
                entity_id=self._budget.user_id,
                succeeded=False,
                error=error,
            )
            self.failed_mutations.append(outcome)
            if self._on_failure:
                self._on_failure(outcome)
            await self._audit_logger.log_persistence_failed(
                operation=operation.value,
                entity_type="budget",
                entity_id=self._budget.user_id,
                error_message=str(error),
                user_id=self._budget.user_id,
            )
            return False
        return True
