"""
Core Data Models for Budget Planner

These models define the schemas for budgets and spending categories.
They are designed to:
1. Enforce non-negative integer amounts at the boundary
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Amounts are whole currency units (int).
Allocation rounds to integers, so there is no need for Decimal here.
"""

from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)


# =============================================================================
# USER / BUDGET
# =============================================================================

class CurrentUser(BaseModel):
    """
    The authenticated user handed in by the auth provider.

    Only the id is used: it keys every budget and category record.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Authenticated user identifier"
    )


class Budget(BaseModel):
    """
    The single total budget of a user.

    Categories are measured against total_amount.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        description="Owner of this budget"
    )
    total_amount: int = Field(
        default=0,
        ge=0,
        description="Total budget in whole currency units"
    )


# =============================================================================
# CATEGORY
# =============================================================================

class Category(BaseModel):
    """
    A named spending bucket.

    min_amount and max_amount are advisory: direct edits may leave
    current_amount outside them. They drive the progress bar only.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique category ID"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owning user (back-reference)"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name, also used for classification"
    )
    current_amount: int = Field(
        default=0,
        ge=0,
        description="Amount currently allocated/spent"
    )
    min_amount: int = Field(
        default=0,
        ge=0,
        description="Advisory lower bound"
    )
    max_amount: int = Field(
        default=0,
        ge=0,
        description="Advisory upper bound"
    )
    # Recorded only. No allocation or metrics rule reads it.
    is_fixed: bool = Field(
        default=False,
        description="Non-discretionary expense"
    )

    def merged(self, patch: "CategoryPatch") -> "Category":
        """Return a copy with the explicitly set patch fields applied."""
        return self.model_copy(update=patch.changes())


class CategoryCreate(BaseModel):
    """
    Input for creating a category.

    The name is NOT validated here: an empty name is a CreateError
    raised by the store, so the caller can keep the form input around.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: str = Field(..., min_length=1)
    name: str = ""
    current_amount: int = Field(default=0, ge=0)
    min_amount: int = Field(default=0, ge=0)
    max_amount: int = Field(default=0, ge=0)
    is_fixed: bool = False

    def to_category(self) -> Category:
        """Build a Category with a freshly generated id."""
        return Category(**self.model_dump())


class CategoryPatch(BaseModel):
    """
    Partial update of the mutable category fields.

    Only fields passed explicitly are applied; id and user_id
    can never be patched.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    current_amount: Optional[int] = Field(default=None, ge=0)
    min_amount: Optional[int] = Field(default=None, ge=0)
    max_amount: Optional[int] = Field(default=None, ge=0)
    is_fixed: Optional[bool] = None

    def changes(self) -> dict:
        """Fields explicitly set on this patch."""
        return self.model_dump(exclude_unset=True, exclude_none=True)

    @property
    def is_empty(self) -> bool:
        return not self.changes()


# =============================================================================
# ENGINE OUTPUT
# =============================================================================

class CategoryAllocation(BaseModel):
    """One category's share of the total budget, as computed by allocate()."""

    category_id: UUID
    name: str
    weight: float = Field(
        ...,
        gt=0.0,
        le=1.0,
        description="Share of the total budget assigned by classification"
    )
    current_amount: int = Field(ge=0)
    min_amount: int = Field(ge=0)
    max_amount: int = Field(ge=0)

    def to_patch(self) -> CategoryPatch:
        """The store update that applies this allocation."""
        return CategoryPatch(
            current_amount=self.current_amount,
            min_amount=self.min_amount,
            max_amount=self.max_amount,
        )


class BudgetSummary(BaseModel):
    """Derived metrics shown on every render."""

    total_amount: int
    total_spent: int
    remaining_savings: int = Field(
        ...,
        description="Total minus spent; negative on overspend"
    )
    savings_stars: int = Field(ge=0, le=5)

    @property
    def is_overspent(self) -> bool:
        return self.remaining_savings < 0
