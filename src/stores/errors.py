"""
Store Errors and Mutation Outcomes

Failure taxonomy of the Budget and Category stores:

- LoadError: fetch failed. The caller shows an empty state.
- CreateError: empty name or failed write. Raised; nothing changes in memory.
- UpdateError / DeleteError: the write after an optimistic mutation failed.
  Never raised. Recorded as a failed MutationOutcome instead, and the
  in-memory state is kept as the user left it.

Every failed write produces a MutationOutcome (succeeded=False) so
callers can build retry or rollback on top without the stores knowing
about it. Successful writes are only audited.
"""

from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field


class BudgetStoreError(Exception):
    """Base exception for store operations."""
    pass


class LoadError(BudgetStoreError):
    """Could not load budget or categories for a user."""
    pass


class CreateError(BudgetStoreError):
    """Category was rejected or could not be persisted."""
    pass


class UpdateError(BudgetStoreError):
    """Persisting an optimistic update failed."""
    pass


class DeleteError(BudgetStoreError):
    """Persisting an optimistic delete failed."""
    pass


class MutationOperation(str, Enum):
    """Store writes that produce an outcome when they fail."""
    CREATE_CATEGORY = "create_category"
    UPDATE_CATEGORY = "update_category"
    DELETE_CATEGORY = "delete_category"
    SET_TOTAL = "set_total"
    CREATE_BUDGET = "create_budget"


class MutationOutcome(BaseModel):
    """Record of one store mutation whose write failed."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    operation: MutationOperation
    entity_id: str
    succeeded: bool
    error: Optional[BudgetStoreError] = None
    completed_at: datetime = Field(default_factory=datetime.utcnow)


# Called with every failed outcome. Must not raise.
FailureCallback = Callable[[MutationOutcome], None]
