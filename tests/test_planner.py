"""Tests for BudgetSession flows (load, edit, Generate Budget)."""

import asyncio
from uuid import uuid4

import pytest

from src.audit import AuditLogger
from src.models.audit import AuditEventType
from src.models.budget import CategoryPatch, CurrentUser
from src.planner import BudgetSession, create_session
from src.services.storage import (
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    InMemoryCategoryStorage,
)
from src.stores import BudgetStore, CategoryStore, CreateError

USER = CurrentUser(id="u1")


def run(coro):
    return asyncio.run(coro)


def build_session(
    budget_storage=None,
    category_storage=None,
    audit_storage=None,
) -> BudgetSession:
    audit_logger = AuditLogger(audit_storage)
    return BudgetSession(
        budget_store=BudgetStore(budget_storage or InMemoryBudgetStorage(), audit_logger),
        category_store=CategoryStore(category_storage or InMemoryCategoryStorage(), audit_logger),
        audit_logger=audit_logger,
    )


@pytest.fixture
def session():
    session = build_session()
    run(session.load(USER))
    return session


class TestLoad:

    def test_load_without_user(self):
        session = build_session()
        assert run(session.load(None)) is False
        assert session.budget is None
        assert session.categories == ()
        assert session.summary().savings_stars == 0

    def test_load_new_user(self, session):
        assert session.budget.total_amount == 0
        assert session.categories == ()

    def test_load_failure_shows_empty_state(self):
        audit_storage = InMemoryAuditStorage()
        session = build_session(
            category_storage=InMemoryCategoryStorage(fail_on={"list"}),
            audit_storage=audit_storage,
        )
        assert run(session.load(USER)) is False
        assert session.categories == ()
        assert audit_storage.events[-1].event_type == AuditEventType.LOAD_FAILED

    def test_budget_failure_on_reload_clears_categories(self):
        budget_storage = InMemoryBudgetStorage()
        session = build_session(budget_storage=budget_storage)
        run(session.load(USER))
        run(session.add_category("Food", current_amount=300))

        budget_storage.fail_on.add("get")
        assert run(session.load(USER)) is False
        assert session.budget is None
        assert session.categories == ()
        assert session.summary().total_spent == 0


class TestEdits:

    def test_add_category(self, session):
        category = run(session.add_category("Food", current_amount=300, is_fixed=True))
        assert category.user_id == "u1"
        assert session.categories == (category,)

    def test_add_category_empty_name(self, session):
        with pytest.raises(CreateError):
            run(session.add_category(""))
        assert session.categories == ()

    def test_add_category_without_user(self):
        session = build_session()
        with pytest.raises(ValueError):
            run(session.add_category("Food"))

    def test_summary_tracks_edits(self, session):
        run(session.set_total(1000))
        run(session.add_category("Food", current_amount=300))
        run(session.add_category("Rent", current_amount=200))
        summary = session.summary()
        assert summary.remaining_savings == 500
        assert summary.savings_stars == 2

    def test_increment_and_decrement(self, session):
        category = run(session.add_category("Food", current_amount=150))
        assert run(session.increment_category(category.id)).current_amount == 250
        assert run(session.decrement_category(category.id)).current_amount == 150
        assert run(session.decrement_category(category.id)).current_amount == 50
        assert run(session.decrement_category(category.id)).current_amount == 50

    def test_decrement_below_step_writes_nothing(self):
        audit_storage = InMemoryAuditStorage()
        session = build_session(audit_storage=audit_storage)
        run(session.load(USER))
        category = run(session.add_category("Food", current_amount=50))
        before = len(audit_storage.events)

        run(session.decrement_category(category.id))
        assert len(audit_storage.events) == before

    def test_step_on_unknown_category(self, session):
        assert run(session.increment_category(uuid4())) is None
        assert run(session.decrement_category(uuid4())) is None

    def test_update_and_delete(self, session):
        category = run(session.add_category("Food"))
        run(session.update_category(category.id, CategoryPatch(max_amount=800)))
        assert session.categories[0].max_amount == 800
        assert run(session.delete_category(category.id)) is True
        assert run(session.delete_category(category.id)) is False
        assert session.categories == ()


class TestGenerateBudget:

    def test_generate_applies_allocations(self, session):
        run(session.set_total(1000))
        food = run(session.add_category("Food"))
        rent = run(session.add_category("Rent"))

        allocations = run(session.generate_budget())

        assert [a.category_id for a in allocations] == [food.id, rent.id]
        by_name = {c.name: c for c in session.categories}
        assert by_name["Food"].current_amount == 400
        assert by_name["Food"].min_amount == 320
        assert by_name["Food"].max_amount == 480
        assert by_name["Rent"].current_amount == 100

    def test_generate_persists(self):
        category_storage = InMemoryCategoryStorage()
        session = build_session(category_storage=category_storage)
        run(session.load(USER))
        run(session.set_total(1000))
        run(session.add_category("Clothes"))
        run(session.generate_budget())

        [stored] = run(category_storage.list_categories("u1"))
        assert stored.current_amount == 200

    def test_generate_keeps_going_after_a_failed_write(self):
        category_storage = InMemoryCategoryStorage()
        session = build_session(category_storage=category_storage)
        run(session.load(USER))
        run(session.set_total(1000))
        run(session.add_category("Food"))
        run(session.add_category("College"))
        category_storage.fail_on.add("update")

        allocations = run(session.generate_budget())

        assert len(allocations) == 2
        assert [c.current_amount for c in session.categories] == [400, 300]
        assert len(session.failed_mutations) == 2
        assert session.has_stale_state is True

    def test_generate_logs_mismatch(self):
        audit_storage = InMemoryAuditStorage()
        session = build_session(audit_storage=audit_storage)
        run(session.load(USER))
        run(session.set_total(1000))
        run(session.add_category("Food"))

        run(session.generate_budget())

        event_types = [e.event_type for e in audit_storage.events]
        assert AuditEventType.BUDGET_GENERATED in event_types
        assert event_types[-1] == AuditEventType.ALLOCATION_MISMATCH

    def test_generate_without_budget(self):
        session = build_session()
        assert run(session.generate_budget()) == []

    def test_generate_without_categories(self, session):
        run(session.set_total(1000))
        assert run(session.generate_budget()) == []


class TestCreateSession:

    def test_defaults_to_memory(self):
        session = create_session(use_storage=False)
        assert run(session.load(USER)) is True
        assert session.budget.total_amount == 0

    def test_explicit_storage(self):
        budget_storage = InMemoryBudgetStorage()
        session = create_session(budget_storage=budget_storage)
        run(session.load(USER))
        run(session.set_total(300))
        assert run(budget_storage.get_budget("u1")).total_amount == 300
