from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from conftest import make_expense
from expense_core import aggregation
from expense_core.defaults import UNCATEGORIZED, UNTAGGED
from expense_core.models import Category, RecurringExpense
from expense_core.services import ExpenseStore


def test_query_month_excludes_adjacent_days(store: ExpenseStore):
    store.expenses.add(make_expense("100", date(2025, 1, 31)))
    february = store.expenses.add(make_expense("200", date(2025, 2, 1)))

    assert store.query_month(date(2025, 2, 15)) == [february]


def test_query_month_matches_year_too(store: ExpenseStore):
    store.expenses.add(make_expense("100", date(2024, 11, 5)))
    current = store.expenses.add(make_expense("200", date(2025, 11, 5)))

    assert store.query_month(datetime(2025, 11, 30, 23, 59)) == [current]


def test_query_month_keeps_stored_order(store: ExpenseStore):
    late = store.expenses.add(make_expense("1", date(2025, 11, 20)))
    early = store.expenses.add(make_expense("2", date(2025, 11, 3)))

    assert store.query_month(date(2025, 11, 1)) == [late, early]


def test_november_scenario(november_store: ExpenseStore):
    november = date(2025, 11, 15)

    entries = november_store.query_month(november)
    breakdown = november_store.tag_breakdown(november)

    assert [entry.date for entry in entries] == [date(2025, 11, 1), date(2025, 11, 2)]
    assert aggregation.sum_amounts(entries) == Decimal("1700")
    assert [(item.name, item.total) for item in breakdown] == [
        ("Supermarket", Decimal("1200")),
        ("Cafe", Decimal("500")),
    ]
    assert november_store.tag_total("Cafe", november) == Decimal("500")


def test_category_total_by_category_and_large_class(store: ExpenseStore):
    electricity = store.categories.find("Utilities", "Electricity")
    store.expenses.add(
        make_expense("4800", date(2025, 6, 3), large_class="Utilities", medium_class="Electricity")
    )
    store.expenses.add(
        make_expense("3900", date(2025, 6, 9), large_class="Utilities", medium_class="Gas")
    )
    store.expenses.add(
        make_expense("5000", date(2025, 7, 3), large_class="Utilities", medium_class="Electricity")
    )

    assert store.category_total(electricity, date(2025, 6, 1)) == Decimal("4800")
    assert store.category_total("utilities", date(2025, 6, 1)) == Decimal("8700")


def test_category_total_empty_is_zero(store: ExpenseStore):
    assert store.category_total("Housing", date(2025, 6, 1)) == Decimal("0")


def test_percentages_sum_to_hundred(november_store: ExpenseStore):
    november_store.expenses.add(make_expense("333", date(2025, 11, 9)))

    breakdown = november_store.tag_breakdown(date(2025, 11, 1))

    assert sum(item.percentage for item in breakdown) == pytest.approx(100.0)
    assert breakdown[-1].name == UNTAGGED


def test_zero_total_yields_empty_breakdown():
    zero = [make_expense("0", date(2025, 11, 1), "Cafe")]

    assert aggregation.tag_breakdown(zero) == []
    assert aggregation.tag_breakdown([]) == []


def test_group_ties_keep_discovery_order():
    expenses = [
        make_expense("100", date(2025, 11, 1), "B"),
        make_expense("100", date(2025, 11, 2), "A"),
        make_expense("300", date(2025, 11, 3), "C"),
    ]

    groups = aggregation.group_totals(expenses, aggregation.tag_key)

    assert [group.name for group in groups] == ["C", "B", "A"]
    assert groups[0].count == 1


def test_category_breakdown_buckets_orphans():
    categories = [Category(large_class="Food", medium_class="Groceries")]
    expenses = [
        make_expense("900", date(2025, 11, 1), large_class="Food", medium_class="Groceries"),
        make_expense("300", date(2025, 11, 2), large_class="Pets", medium_class="Toys"),
        make_expense("200", date(2025, 11, 3)),
    ]

    breakdown = aggregation.category_breakdown(expenses, categories)

    assert [(item.name, item.total) for item in breakdown] == [
        ("Food", Decimal("900")),
        (UNCATEGORIZED, Decimal("500")),
    ]


def test_daily_breakdown_sorted_by_date(store: ExpenseStore):
    store.expenses.add(make_expense("300", date(2025, 11, 20)))
    store.expenses.add(make_expense("100", date(2025, 11, 2)))
    store.expenses.add(make_expense("50", date(2025, 11, 20)))

    daily = store.daily_breakdown(date(2025, 11, 1))

    assert [(point.day.day, point.total) for point in daily] == [
        (2, Decimal("100")),
        (20, Decimal("350")),
    ]


def test_cumulative_series_is_zero_filled(store: ExpenseStore):
    store.expenses.add(make_expense("100", date(2024, 2, 2)))
    store.expenses.add(make_expense("50", date(2024, 2, 28)))
    store.expenses.add(make_expense("999", date(2024, 3, 1)))

    series = store.cumulative_series(date(2024, 2, 10))

    assert len(series) == 29
    assert series[0].cumulative == Decimal("0")
    assert series[1].total == Decimal("100")
    assert series[10].cumulative == Decimal("100")
    assert series[-1].day == date(2024, 2, 29)
    assert series[-1].cumulative == Decimal("150")


def test_monthly_summary(november_store: ExpenseStore):
    summary = november_store.monthly_summary(date(2025, 11, 15))

    assert summary.month == date(2025, 11, 1)
    assert summary.total == Decimal("1700")
    assert summary.count == 2
    assert not summary.is_empty
    assert summary.tags[0].name == "Supermarket"
    assert summary.categories[0].name == UNCATEGORIZED
    assert len(summary.cumulative) == 30


def test_monthly_summary_empty_month(november_store: ExpenseStore):
    summary = november_store.monthly_summary(date(2025, 10, 1))

    assert summary.is_empty
    assert summary.tags == []
    assert summary.categories == []
    assert summary.daily == []
    assert all(point.cumulative == 0 for point in summary.cumulative)


def test_budget_summary_flags_overspend():
    lines = [
        RecurringExpense(name="Housing", budget=Decimal("100000"), actual_spent=Decimal("98000")),
        RecurringExpense(name="Gas", budget=Decimal("4000"), actual_spent=Decimal("4500")),
    ]

    summary = aggregation.summarize_budget(lines)

    assert summary.total_budget == Decimal("104000")
    assert summary.total_spent == Decimal("102500")
    assert summary.remaining == Decimal("1500")
    assert summary.over_budget == ["Gas"]
    assert summary.progress == pytest.approx(102500 / 104000)


def test_budget_summary_empty():
    summary = aggregation.summarize_budget([])

    assert summary.progress == 0.0
    assert summary.remaining == Decimal("0")
