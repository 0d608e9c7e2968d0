"""
Budget Planner - Source Package

Splits a fixed total budget across named spending categories,
tracks spend against advisory bounds, and rates savings with 0-5 stars.

DESIGN PRINCIPLES:
1. Allocation and metrics are pure functions
2. Stores are built per session, never shared globally
3. Writes are optimistic; failures are recorded, not hidden
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Planner Team"
