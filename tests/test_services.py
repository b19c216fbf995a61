from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from conftest import FailingStorage, make_expense
from expense_core import events as store_events
from expense_core.defaults import default_categories, default_recurring_expenses, default_tags
from expense_core.exceptions import RecordNotFoundError
from expense_core.models import Category, Tag
from expense_core.services import ExpenseStore
from expense_core.storage import JSONStorage


def test_first_run_seeds_defaults(store: ExpenseStore):
    assert store.expenses.list() == []
    assert store.categories.list() == default_categories()
    assert store.recurring.list() == default_recurring_expenses()
    assert store.tags.list() == default_tags()


def test_first_run_persists_seeded_collections(store: ExpenseStore, storage: JSONStorage):
    assert storage.load("categories") is not None
    assert storage.load("recurring_expenses") is not None
    assert storage.load("tags") is not None
    assert storage.load("daily_expenses") is None


def test_add_assigns_fresh_id(store: ExpenseStore):
    expense = store.expenses.add(make_expense("500", date(2025, 11, 1), "Cafe"))

    assert expense.id
    assert store.expenses.list() == [expense]


def test_add_keeps_caller_supplied_id(store: ExpenseStore):
    expense = store.expenses.add(make_expense("500", date(2025, 11, 1), id="given"))

    assert expense.id == "given"


def test_add_then_delete_restores_collection(store: ExpenseStore):
    store.expenses.add(make_expense("100", date(2025, 1, 1)))
    before = store.expenses.list()

    added = store.expenses.add(make_expense("200", date(2025, 1, 2)))
    assert store.expenses.delete(added.id) is True

    assert store.expenses.list() == before


def test_add_appends_in_insertion_order(store: ExpenseStore):
    later = store.expenses.add(make_expense("1", date(2025, 3, 1)))
    earlier = store.expenses.add(make_expense("2", date(2025, 1, 1)))

    assert store.expenses.list() == [later, earlier]
    assert store.expenses.index_of(earlier.id) == 1


def test_update_replaces_record_by_id(store: ExpenseStore):
    first = store.expenses.add(make_expense("100", date(2025, 1, 1)))
    second = store.expenses.add(make_expense("200", date(2025, 1, 2)))

    changed = replace(second, amount=Decimal("250"), tag="Cafe")
    assert store.expenses.update(changed) is True

    assert store.expenses.list() == [first, changed]


def test_update_and_delete_unknown_id_are_noops(store: ExpenseStore, events):
    store.expenses.add(make_expense("100", date(2025, 1, 1)))
    before = store.expenses.list()
    events.clear()

    assert store.expenses.update(make_expense("999", date(2025, 1, 1), id="missing")) is False
    assert store.expenses.delete("missing") is False

    assert store.expenses.list() == before
    assert events == []


def test_get_unknown_raises(store: ExpenseStore):
    with pytest.raises(RecordNotFoundError):
        store.tags.get("missing")


def test_mutations_survive_reload(store: ExpenseStore, storage: JSONStorage):
    store.expenses.add(make_expense("500", date(2025, 11, 1), "Cafe", tag_note="latte"))
    store.tags.add(Tag(name="Books", color_hex="#112233"))
    line = store.recurring.list()[0]
    store.recurring.update(replace(line, actual_spent=Decimal("99000")))

    reloaded = ExpenseStore(storage)

    assert reloaded.expenses.list() == store.expenses.list()
    assert reloaded.tags.list() == store.tags.list()
    assert reloaded.recurring.list() == store.recurring.list()
    assert reloaded.categories.list() == store.categories.list()


def test_user_emptied_collection_is_not_reseeded(store: ExpenseStore, storage: JSONStorage):
    for tag in store.tags.list():
        store.tags.delete(tag.id)

    assert ExpenseStore(storage).tags.list() == []


def test_corrupted_file_falls_back_to_defaults(storage: JSONStorage, caplog):
    storage.path_for("categories").write_text("{broken", encoding="utf-8")
    storage.path_for("daily_expenses").write_text("[1, 2", encoding="utf-8")

    with caplog.at_level(logging.ERROR, logger="expense_core.services"):
        store = ExpenseStore(storage)

    assert store.categories.list() == default_categories()
    assert store.expenses.list() == []
    assert "Error loading categories" in caplog.text


def test_undecodable_records_fall_back_to_defaults(storage: JSONStorage):
    storage.save("tags", [{"colorHex": "#000000"}])

    assert ExpenseStore(storage).tags.list() == default_tags()


def test_write_failure_keeps_in_memory_state(failing_storage: FailingStorage, caplog):
    store = ExpenseStore(failing_storage)
    received = []
    store.subscribe(received.append)
    failing_storage.fail_writes = True

    with caplog.at_level(logging.ERROR, logger="expense_core.services"):
        expense = store.expenses.add(make_expense("500", date(2025, 11, 1)))

    assert store.expenses.list() == [expense]
    assert store.unsaved_resources == ["daily_expenses"]
    assert store.has_unsaved_changes
    assert [event.action for event in received] == [
        store_events.PERSISTENCE_FAILED,
        store_events.ADDED,
    ]
    assert "Error saving daily_expenses" in caplog.text
    assert ExpenseStore(JSONStorage(failing_storage.base_path)).expenses.list() == []


def test_successful_write_clears_unsaved_flag(failing_storage: FailingStorage):
    store = ExpenseStore(failing_storage)
    failing_storage.fail_writes = True
    store.expenses.add(make_expense("500", date(2025, 11, 1)))
    failing_storage.fail_writes = False

    store.expenses.add(make_expense("600", date(2025, 11, 2)))

    assert not store.has_unsaved_changes
    assert len(ExpenseStore(JSONStorage(failing_storage.base_path)).expenses) == 2


def test_subscribers_see_state_after_mutation(store: ExpenseStore):
    seen = []

    def handler(event):
        seen.append((event.action, event.resource, len(store.expenses)))

    store.subscribe(handler)
    expense = store.expenses.add(make_expense("500", date(2025, 11, 1)))
    store.expenses.delete(expense.id)

    assert seen == [
        (store_events.ADDED, "daily_expenses", 1),
        (store_events.DELETED, "daily_expenses", 0),
    ]


def test_failing_subscriber_does_not_break_mutation(store: ExpenseStore, caplog):
    def broken(event):
        raise RuntimeError("subscriber failed")

    seen = []
    store.subscribe(broken)
    store.subscribe(seen.append)

    with caplog.at_level(logging.ERROR, logger="expense_core.events"):
        expense = store.expenses.add(make_expense("500", date(2025, 11, 1)))

    assert store.expenses.list() == [expense]
    assert [event.action for event in seen] == [store_events.ADDED]
    assert "Subscriber" in caplog.text


def test_unsubscribe_stops_notifications(store: ExpenseStore):
    seen = []
    unsubscribe = store.subscribe(seen.append)
    unsubscribe()

    store.tags.add(Tag(name="Books"))

    assert seen == []


def test_clear_all_resets_every_collection(store: ExpenseStore, storage: JSONStorage, events):
    store.expenses.add(make_expense("500", date(2025, 11, 1)))
    store.tags.delete(store.tags.list()[0].id)
    store.categories.add(Category(large_class="Pets", medium_class="Food"))
    events.clear()

    store.clear_all()

    assert store.expenses.list() == []
    assert store.tags.list() == default_tags()
    assert store.categories.list() == default_categories()
    assert store.recurring.list() == default_recurring_expenses()
    assert [event.action for event in events] == [store_events.RESET]

    reloaded = ExpenseStore(storage)
    assert reloaded.expenses.list() == []
    assert reloaded.tags.list() == default_tags()


def test_available_tag_names_are_distinct_and_sorted(store: ExpenseStore):
    store.tags.add(Tag(name="Cafe"))
    store.tags.add(Tag(name="Bakery"))

    names = store.available_tag_names()

    assert names == sorted(set(names))
    assert names.count("Cafe") == 1
    assert names[0] == "Bakery"


def test_deleting_tag_leaves_expense_reference(store: ExpenseStore):
    cafe = store.tags.find_by_name("cafe")
    expense = store.expenses.add(make_expense("500", date(2025, 11, 1), cafe.name))

    store.tags.delete(cafe.id)

    assert store.tags.find_by_name("Cafe") is None
    assert store.expenses.get(expense.id).tag == "Cafe"


def test_category_lookup_helpers(store: ExpenseStore):
    assert store.categories.find("utilities", "gas").medium_class == "Gas"
    assert store.categories.find("Utilities", "Steam") is None
    assert "Utilities" in store.categories.large_classes()
    assert [c.medium_class for c in store.categories.medium_classes("Utilities")] == [
        "Electricity",
        "Gas",
        "Water",
    ]


def test_recurring_totals(store: ExpenseStore):
    line = store.recurring.list()[0]
    store.recurring.update(replace(line, actual_spent=Decimal("98000")))

    assert store.total_recurring_budget() == Decimal("124000")
    assert store.total_recurring_spent() == Decimal("98000")
    assert store.budget_summary().remaining == Decimal("26000")


def test_refresh_reloads_from_disk(store: ExpenseStore, storage: JSONStorage, events):
    other = ExpenseStore(storage)
    other.expenses.add(make_expense("500", date(2025, 11, 1)))

    store.refresh()

    assert len(store.expenses) == 1
    assert events[-1].action == store_events.RESET


def test_snapshot_contains_all_collections(store: ExpenseStore):
    snapshot = store.snapshot()

    assert set(snapshot) == {"daily_expenses", "recurring_expenses", "categories", "tags"}
    assert snapshot["tags"][0]["colorHex"].startswith("#")


def test_ids_assigned_on_load_are_persisted(storage: JSONStorage):
    storage.save("daily_expenses", [{"amount": "5", "date": "2025-01-01"}])

    first = ExpenseStore(storage).expenses.list()[0]
    second = ExpenseStore(storage).expenses.list()[0]

    assert first.id
    assert second.id == first.id
    assert storage.load("daily_expenses")[0]["id"] == first.id
