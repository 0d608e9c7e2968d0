"""
Category Store

Holds one user's spending categories in memory and mirrors every
change to a CategoryStorageInterface backend.

DESIGN DECISION: Updates and deletes are optimistic. The in-memory set
changes first, then the write is awaited. A failed write is logged and
recorded, but never reverted, so the dashboard keeps showing what the
user did. Creation is the exception: a category only appears once the
backend has accepted it.
"""

from typing import Optional
from uuid import UUID

import structlog

from src.audit import AuditLogger
from src.models.budget import Category, CategoryCreate, CategoryPatch
from src.services.storage import CategoryStorageInterface, StorageError
from src.stores.errors import (
    BudgetStoreError,
    CreateError,
    DeleteError,
    FailureCallback,
    LoadError,
    MutationOperation,
    MutationOutcome,
    UpdateError,
)

logger = structlog.get_logger(__name__)


class CategoryStore:
    """
    In-memory category set for a single user.

    Construct one per session and pass it to whoever needs it.
    """

    def __init__(
        self,
        storage: CategoryStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        on_failure: Optional[FailureCallback] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._on_failure = on_failure
        self._categories: list[Category] = []
        self._user_id: Optional[str] = None
        self.failed_mutations: list[MutationOutcome] = []

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def categories(self) -> tuple[Category, ...]:
        """Current categories, in insertion order."""
        return tuple(self._categories)

    @property
    def has_stale_state(self) -> bool:
        """True if a write failed since the last fetch."""
        return bool(self.failed_mutations)

    def get(self, category_id: UUID) -> Optional[Category]:
        for category in self._categories:
            if category.id == category_id:
                return category
        return None

    def clear(self) -> None:
        """Drop the in-memory set and recorded failures. Storage is untouched."""
        self._categories = []
        self.failed_mutations = []

    async def fetch(self, user_id: str) -> tuple[Category, ...]:
        """
        Replace the in-memory set with the user's stored categories.

        Raises:
            LoadError: If storage can't be read (the set is left empty)
        """
        self._user_id = user_id
        self.failed_mutations = []
        try:
            self._categories = list(await self._storage.list_categories(user_id))
        except StorageError as e:
            self._categories = []
            raise LoadError(f"Failed to load categories for {user_id}: {e}") from e
        return self.categories

    async def create(self, data: CategoryCreate) -> Category:
        """
        Create and persist a category, then add it to the set.

        Raises:
            CreateError: If the name is empty or the write fails.
                         The in-memory set is unchanged either way.
        """
        if not data.name:
            await self._audit_logger.log_category_create_failed(
                user_id=data.user_id,
                name=data.name,
                error_message="Category name is required",
            )
            raise CreateError("Category name is required")

        try:
            category = data.to_category()
        except ValueError as e:
            raise CreateError(f"Invalid category: {e}") from e

        try:
            await self._storage.save_category(category)
        except StorageError as e:
            error = CreateError(f"Failed to save category '{category.name}': {e}")
            self._record_failure(MutationOperation.CREATE_CATEGORY, category.id, error)
            await self._audit_logger.log_category_create_failed(
                user_id=data.user_id,
                name=category.name,
                error_message=str(e),
            )
            raise error from e

        self._categories.append(category)
        await self._audit_logger.log_category_created(
            user_id=category.user_id,
            category_id=category.id,
            name=category.name,
            current_amount=category.current_amount,
        )
        return category

    async def update(
        self,
        category_id: UUID,
        patch: CategoryPatch,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[Category]:
        """
        Merge a patch into a category and persist it.

        An unknown id is a no-op (the category may have just been deleted).

        Returns:
            The updated category, or None if no category matched
        """
        for idx, existing in enumerate(self._categories):
            if existing.id == category_id:
                break
        else:
            logger.debug("category_update_skipped", category_id=str(category_id))
            return None

        updated = existing.merged(patch)
        self._categories[idx] = updated
        await self._audit_logger.log_category_updated(
            user_id=updated.user_id,
            category_id=category_id,
            changes=patch.changes(),
            correlation_id=correlation_id,
        )

        try:
            await self._storage.update_category(updated)
        except StorageError as e:
            await self._persistence_failed(
                MutationOperation.UPDATE_CATEGORY,
                category_id,
                UpdateError(f"Failed to persist update of {category_id}: {e}"),
            )
        return updated

    async def delete(self, category_id: UUID) -> bool:
        """
        Remove a category and persist the removal.

        Unknown ids are a no-op.

        Returns:
            True if a category was removed from the in-memory set
        """
        category = self.get(category_id)
        if category is None:
            return False

        self._categories = [c for c in self._categories if c.id != category_id]
        await self._audit_logger.log_category_deleted(category.user_id, category_id)

        try:
            await self._storage.delete_category(category_id)
        except StorageError as e:
            await self._persistence_failed(
                MutationOperation.DELETE_CATEGORY,
                category_id,
                DeleteError(f"Failed to persist delete of {category_id}: {e}"),
            )
        return True

    async def _persistence_failed(
        self,
        operation: MutationOperation,
        category_id: UUID,
        error: BudgetStoreError,
    ) -> None:
        self._record_failure(operation, category_id, error)
        await self._audit_logger.log_persistence_failed(
            operation=operation.value,
            entity_type="category",
            entity_id=str(category_id),
            error_message=str(error),
            user_id=self._user_id,
        )

    def _record_failure(
        self,
        operation: MutationOperation,
        category_id: UUID,
        error: BudgetStoreError,
    ) -> None:
        outcome = MutationOutcome(
            operation=operation,
            entity_id=str(category_id),
            succeeded=False,
            error=error,
        )
        self.failed_mutations.append(outcome)
        if self._on_failure:
            self._on_failure(outcome)
