"""In-memory budget and category stores backed by a storage interface."""

from src.stores.budget_store import BudgetStore
from src.stores.category_store import CategoryStore
from src.stores.errors import (
    BudgetStoreError,
    CreateError,
    DeleteError,
    LoadError,
    MutationOperation,
    MutationOutcome,
    UpdateError,
)

__all__ = [
    "BudgetStore",
    "CategoryStore",
    "BudgetStoreError",
    "CreateError",
    "DeleteError",
    "LoadError",
    "MutationOperation",
    "MutationOutcome",
    "UpdateError",
]
