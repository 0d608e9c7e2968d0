"""
Allocation Engine

Turns a total budget and a set of categories into per-category
allocations. Pure functions only: applying the result to the stores
is the session's job (see src/planner.py).

Classification is an ordered rule table evaluated top-down.
The first rule whose keyword appears in the lowercased category name
wins; names matching nothing get DEFAULT_WEIGHT.

KNOWN LIMITATION: weights are per category and are NOT normalized.
Two "food" categories each get 40%, so the allocated total can exceed
(or fall short of) the budget. Callers can compare allocated_total()
with the budget to detect this.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict

from src.models.budget import Category, CategoryAllocation


class AllocationRule(BaseModel):
    """A named classification rule: any keyword match assigns the weight."""
    model_config = ConfigDict(frozen=True)

    label: str
    keywords: tuple[str, ...]
    weight: Decimal

    def matches(self, name: str) -> bool:
        lowered = name.lower()
        return any(keyword in lowered for keyword in self.keywords)


ALLOCATION_RULES: tuple[AllocationRule, ...] = (
    AllocationRule(label="food", keywords=("food",), weight=Decimal("0.40")),
    AllocationRule(label="education", keywords=("fee", "college"), weight=Decimal("0.30")),
    AllocationRule(label="clothing", keywords=("cloth",), weight=Decimal("0.20")),
)

DEFAULT_RULE = AllocationRule(label="other", keywords=(), weight=Decimal("0.10"))
DEFAULT_WEIGHT = DEFAULT_RULE.weight

MIN_BOUND_RATIO = Decimal("0.8")
MAX_BOUND_RATIO = Decimal("1.2")


def round_currency(value: Union[Decimal, int, float]) -> int:
    """
    Round to the nearest whole currency unit, ties away from zero.

    Floats are converted through str() so 0.1-style artifacts
    don't shift a tie.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def classify(
    name: str,
    rules: Optional[Sequence[AllocationRule]] = None,
) -> AllocationRule:
    """Return the first rule matching the name, or DEFAULT_RULE."""
    for rule in ALLOCATION_RULES if rules is None else rules:
        if rule.matches(name):
            return rule
    return DEFAULT_RULE


def allocate_amount(total_amount: int, weight: Decimal) -> tuple[int, int, int]:
    """
    Compute (current, min, max) for one weight.

    Bounds are derived from the rounded amount, not the raw product.
    """
    amount = round_currency(Decimal(str(total_amount)) * weight)
    return (
        amount,
        round_currency(Decimal(amount) * MIN_BOUND_RATIO),
        round_currency(Decimal(amount) * MAX_BOUND_RATIO),
    )


def allocate(
    total_amount: int,
    categories: Iterable[Category],
    rules: Optional[Sequence[AllocationRule]] = None,
) -> list[CategoryAllocation]:
    """
    Allocate the total budget across categories.

    Emits one record per category, in input order. Each record is
    computed independently from the category name.

    Args:
        total_amount: The budget to allocate (non-negative)
        categories: Categories to allocate to
        rules: Override the classification table (defaults to ALLOCATION_RULES)

    Returns:
        List of CategoryAllocation records

    Example:
        >>> [a.current_amount for a in allocate(1000, [food, rent])]
        [400, 100]
    """
    if total_amount < 0:
        raise ValueError(f"Total amount must be non-negative, got {total_amount}")

    allocations = []
    for category in categories:
        rule = classify(category.name, rules)
        current, minimum, maximum = allocate_amount(total_amount, rule.weight)
        allocations.append(CategoryAllocation(
            category_id=category.id,
            name=category.name,
            weight=float(rule.weight),
            current_amount=current,
            min_amount=minimum,
            max_amount=maximum,
        ))
    return allocations


def allocated_total(allocations: Iterable[CategoryAllocation]) -> int:
    """Sum of allocated current amounts."""
    return sum(allocation.current_amount for allocation in allocations)
