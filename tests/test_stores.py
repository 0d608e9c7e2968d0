"""
Tests for the budget and category stores.

Run against the in-memory backend; persistence failures are injected
with fail_on.
"""

import asyncio
from decimal import Decimal
from uuid import uuid4

import pytest

from src.models.budget import Budget, CategoryCreate, CategoryPatch
from src.services.storage import (
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    InMemoryCategoryStorage,
)
from src.audit import AuditLogger
from src.models.audit import AuditEventType
from src.stores import (
    BudgetStore,
    CategoryStore,
    CreateError,
    DeleteError,
    LoadError,
    MutationOperation,
    UpdateError,
)


def run(coro):
    return asyncio.run(coro)


def new_category(name: str = "Food", **amounts) -> CategoryCreate:
    return CategoryCreate(user_id="u1", name=name, **amounts)


@pytest.fixture
def category_storage():
    return InMemoryCategoryStorage()


@pytest.fixture
def category_store(category_storage):
    store = CategoryStore(category_storage)
    run(store.fetch("u1"))
    return store


class TestCategoryStoreFetch:

    def test_fetch_replaces_state(self, category_storage):
        store = CategoryStore(category_storage)
        run(store.fetch("u1"))
        run(store.create(new_category("Food")))

        fresh = CategoryStore(category_storage)
        categories = run(fresh.fetch("u1"))
        assert [c.name for c in categories] == ["Food"]

    def test_fetch_only_loads_own_categories(self, category_storage):
        other = CategoryStore(category_storage)
        run(other.fetch("u2"))
        run(other.create(CategoryCreate(user_id="u2", name="Rent")))

        store = CategoryStore(category_storage)
        assert run(store.fetch("u1")) == ()

    def test_fetch_failure_raises_load_error_and_empties(self):
        storage = InMemoryCategoryStorage()
        store = CategoryStore(storage)
        run(store.fetch("u1"))
        run(store.create(new_category("Food")))

        storage.fail_on.add("list")
        with pytest.raises(LoadError):
            run(store.fetch("u1"))
        assert store.categories == ()

    def test_clear_keeps_storage(self, category_store, category_storage):
        run(category_store.create(new_category("Food")))
        category_store.clear()
        assert category_store.categories == ()
        assert len(run(category_storage.list_categories("u1"))) == 1


class TestCategoryStoreCreate:

    def test_create_appends(self, category_store):
        category = run(category_store.create(new_category("Food", current_amount=300)))
        assert category_store.categories == (category,)
        assert category.current_amount == 300

    def test_create_keeps_insertion_order(self, category_store):
        for name in ("Rent", "Food", "Clothes"):
            run(category_store.create(new_category(name)))
        assert [c.name for c in category_store.categories] == ["Rent", "Food", "Clothes"]

    def test_empty_name_rejected(self, category_store, category_storage):
        with pytest.raises(CreateError):
            run(category_store.create(new_category("   ")))
        assert category_store.categories == ()
        assert run(category_storage.list_categories("u1")) == []

    def test_persistence_failure_leaves_state_unchanged(self):
        store = CategoryStore(InMemoryCategoryStorage(fail_on={"save"}))
        run(store.fetch("u1"))
        with pytest.raises(CreateError):
            run(store.create(new_category("Food")))
        assert store.categories == ()
        assert store.failed_mutations[0].operation == MutationOperation.CREATE_CATEGORY


class TestCategoryStoreUpdate:

    def test_update_merges_patch(self, category_store, category_storage):
        category = run(category_store.create(new_category("Food", max_amount=500)))
        updated = run(category_store.update(category.id, CategoryPatch(current_amount=200)))

        assert updated.current_amount == 200
        assert updated.max_amount == 500
        assert category_store.get(category.id) == updated
        assert run(category_storage.list_categories("u1")) == [updated]

    def test_update_unknown_id_is_noop(self, category_store):
        run(category_store.create(new_category("Food")))
        before = category_store.categories
        assert run(category_store.update(uuid4(), CategoryPatch(current_amount=1))) is None
        assert category_store.categories == before
        assert category_store.failed_mutations == []

    def test_update_failure_is_not_reverted(self):
        storage = InMemoryCategoryStorage()
        failures = []
        store = CategoryStore(storage, on_failure=failures.append)
        run(store.fetch("u1"))
        category = run(store.create(new_category("Food")))

        storage.fail_on.add("update")
        updated = run(store.update(category.id, CategoryPatch(current_amount=900)))

        assert updated.current_amount == 900
        assert store.get(category.id).current_amount == 900
        assert store.has_stale_state is True
        assert isinstance(failures[0].error, UpdateError)
        assert failures[0].succeeded is False
        # Backend still has the old value
        assert run(storage.list_categories("u1"))[0].current_amount == 0


class TestCategoryStoreDelete:

    def test_delete(self, category_store, category_storage):
        category = run(category_store.create(new_category("Food")))
        assert run(category_store.delete(category.id)) is True
        assert category_store.categories == ()
        assert run(category_storage.list_categories("u1")) == []

    def test_delete_unknown_id_is_noop(self, category_store):
        run(category_store.create(new_category("Food")))
        assert run(category_store.delete(uuid4())) is False
        assert len(category_store.categories) == 1

    def test_delete_failure_is_not_restored(self):
        storage = InMemoryCategoryStorage()
        store = CategoryStore(storage)
        run(store.fetch("u1"))
        category = run(store.create(new_category("Food")))

        storage.fail_on.add("delete")
        assert run(store.delete(category.id)) is True
        assert store.categories == ()
        assert isinstance(store.failed_mutations[0].error, DeleteError)

    def test_refetch_clears_failures(self):
        storage = InMemoryCategoryStorage()
        store = CategoryStore(storage)
        run(store.fetch("u1"))
        category = run(store.create(new_category("Food")))
        storage.fail_on.add("delete")
        run(store.delete(category.id))

        storage.fail_on.clear()
        categories = run(store.fetch("u1"))
        assert store.has_stale_state is False
        # The failed delete reappears once state is reloaded
        assert [c.id for c in categories] == [category.id]


class TestBudgetStore:

    def test_fetch_creates_zero_budget(self):
        storage = InMemoryBudgetStorage()
        store = BudgetStore(storage)
        budget = run(store.fetch("u1"))
        assert budget == Budget(user_id="u1", total_amount=0)
        assert run(storage.get_budget("u1")) == budget

    def test_fetch_existing_budget(self):
        storage = InMemoryBudgetStorage()
        run(storage.save_budget(Budget(user_id="u1", total_amount=2500)))
        store = BudgetStore(storage)
        assert run(store.fetch("u1")).total_amount == 2500

    def test_fetch_failure(self):
        store = BudgetStore(InMemoryBudgetStorage(fail_on={"get"}))
        with pytest.raises(LoadError):
            run(store.fetch("u1"))
        assert store.budget is None

    def test_set_total(self):
        storage = InMemoryBudgetStorage()
        store = BudgetStore(storage)
        run(store.fetch("u1"))
        run(store.set_total(1000))
        assert store.budget.total_amount == 1000
        assert run(storage.get_budget("u1")).total_amount == 1000

    def test_set_total_rounds_fractions(self):
        store = BudgetStore(InMemoryBudgetStorage())
        run(store.fetch("u1"))
        assert run(store.set_total(99.5)).total_amount == 100

    def test_set_total_accepts_decimal(self):
        store = BudgetStore(InMemoryBudgetStorage())
        run(store.fetch("u1"))
        assert run(store.set_total(Decimal("1250.5"))).total_amount == 1251

    @pytest.mark.parametrize(
        "amount",
        [-1, "100", None, True, float("nan"), Decimal("-5"), Decimal("NaN")],
    )
    def test_set_total_rejects_invalid(self, amount):
        store = BudgetStore(InMemoryBudgetStorage())
        run(store.fetch("u1"))
        with pytest.raises(ValueError):
            run(store.set_total(amount))
        assert store.budget.total_amount == 0

    def test_set_total_before_fetch(self):
        store = BudgetStore(InMemoryBudgetStorage())
        with pytest.raises(ValueError):
            run(store.set_total(100))

    def test_set_total_failure_keeps_new_value(self):
        storage = InMemoryBudgetStorage()
        store = BudgetStore(storage)
        run(store.fetch("u1"))
        storage.fail_on.add("save")

        run(store.set_total(750))
        assert store.budget.total_amount == 750
        assert store.has_stale_state is True
        assert store.failed_mutations[0].operation == MutationOperation.SET_TOTAL


class TestStoreAuditing:

    def test_mutations_are_audited(self):
        audit_storage = InMemoryAuditStorage()
        store = CategoryStore(InMemoryCategoryStorage(), AuditLogger(audit_storage))
        run(store.fetch("u1"))
        category = run(store.create(new_category("Food")))
        run(store.update(category.id, CategoryPatch(current_amount=100)))
        run(store.delete(category.id))

        assert [e.event_type for e in audit_storage.events] == [
            AuditEventType.CATEGORY_CREATED,
            AuditEventType.CATEGORY_UPDATED,
            AuditEventType.CATEGORY_DELETED,
        ]

    def test_audit_storage_failure_does_not_break_store(self):
        audit_storage = InMemoryAuditStorage(fail_on={"append"})
        store = CategoryStore(InMemoryCategoryStorage(), AuditLogger(audit_storage))
        run(store.fetch("u1"))
        category = run(store.create(new_category("Food")))
        assert store.categories == (category,)

    def test_successful_writes_record_no_outcome(self):
        failures = []
        store = CategoryStore(InMemoryCategoryStorage(), on_failure=failures.append)
        run(store.fetch("u1"))
        category = run(store.create(new_category("Food")))
        run(store.update(category.id, CategoryPatch(current_amount=100)))
        run(store.delete(category.id))

        assert store.failed_mutations == []
        assert failures == []

    def test_budget_creation_audited_only_when_saved(self):
        audit_storage = InMemoryAuditStorage()
        store = BudgetStore(InMemoryBudgetStorage(), AuditLogger(audit_storage))
        run(store.fetch("u1"))
        assert [e.event_type for e in audit_storage.events] == [AuditEventType.BUDGET_CREATED]

    def test_failed_budget_creation_not_audited_as_created(self):
        audit_storage = InMemoryAuditStorage()
        store = BudgetStore(
            InMemoryBudgetStorage(fail_on={"save"}),
            AuditLogger(audit_storage),
        )
        budget = run(store.fetch("u1"))

        assert budget.total_amount == 0
        assert store.failed_mutations[0].operation == MutationOperation.CREATE_BUDGET
        assert [e.event_type for e in audit_storage.events] == [
            AuditEventType.PERSISTENCE_FAILED,
        ]
