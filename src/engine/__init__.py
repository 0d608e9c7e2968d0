"""Allocation engine and metrics calculator (pure functions)."""

from src.engine.allocation import (
    ALLOCATION_RULES,
    DEFAULT_RULE,
    DEFAULT_WEIGHT,
    AllocationRule,
    allocate,
    allocated_total,
    classify,
    round_currency,
)
from src.engine.metrics import (
    ADJUSTMENT_STEP,
    budget_summary,
    decrement,
    increment,
    progress_percent,
    remaining_savings,
    savings_stars,
    total_spent,
)

__all__ = [
    # Allocation
    "ALLOCATION_RULES",
    "DEFAULT_RULE",
    "DEFAULT_WEIGHT",
    "AllocationRule",
    "allocate",
    "allocated_total",
    "classify",
    "round_currency",
    # Metrics
    "ADJUSTMENT_STEP",
    "budget_summary",
    "decrement",
    "increment",
    "progress_percent",
    "remaining_savings",
    "savings_stars",
    "total_spent",
]
