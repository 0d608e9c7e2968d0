"""
Metrics Calculator

Derived values recomputed from current state on every render:
remaining savings, the 0-5 savings star rating, per-category
progress, and the +/- step adjustments.

None of these functions touch the stores.
"""

from typing import Iterable, Optional

from src.models.budget import Budget, BudgetSummary, Category

ADJUSTMENT_STEP = 100
STAR_BAND_PERCENT = 20
MAX_STARS = 5


def total_spent(categories: Iterable[Category]) -> int:
    """Sum of current amounts across categories."""
    return sum(category.current_amount for category in categories)


def remaining_savings(
    budget: Optional[Budget],
    categories: Iterable[Category],
) -> int:
    """
    Total budget minus everything currently allocated.

    Negative when categories exceed the budget. 0 without a budget.
    """
    if budget is None:
        return 0
    return budget.total_amount - total_spent(categories)


def savings_stars(
    budget: Optional[Budget],
    categories: Iterable[Category],
) -> int:
    """
    Savings rating: one star per 20% of the budget left unspent.

    Always in [0, 5]. A missing or zero budget rates 0 stars;
    overspending floors at 0.
    """
    if budget is None or budget.total_amount == 0:
        return 0

    # floor(percentage / band) in integer arithmetic, so band edges are exact
    stars = (remaining_savings(budget, categories) * 100) // (
        budget.total_amount * STAR_BAND_PERCENT
    )
    return max(0, min(stars, MAX_STARS))


def increment(category: Category, step: int = ADJUSTMENT_STEP) -> int:
    """New current amount after one '+' click."""
    return category.current_amount + step


def decrement(category: Category, step: int = ADJUSTMENT_STEP) -> int:
    """
    New current amount after one '-' click.

    Below one step the amount is left unchanged rather than clamped to zero.
    """
    if category.current_amount >= step:
        return category.current_amount - step
    return category.current_amount


def progress_percent(category: Category) -> float:
    """
    How full a category is relative to its max bound, capped at 100.

    A zero max is treated as 1 so it never divides by zero.
    """
    maximum = category.max_amount or 1
    return max(0.0, min(category.current_amount / maximum * 100, 100.0))


def budget_summary(
    budget: Optional[Budget],
    categories: Iterable[Category],
) -> BudgetSummary:
    """Bundle the dashboard metrics into one model."""
    categories = list(categories)
    return BudgetSummary(
        total_amount=budget.total_amount if budget else 0,
        total_spent=total_spent(categories),
        remaining_savings=remaining_savings(budget, categories),
        savings_stars=savings_stars(budget, categories),
    )
