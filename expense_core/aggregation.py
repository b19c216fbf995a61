"""Derived monthly views over the store's collections.

Everything here is a pure function of its arguments: nothing is cached and
nothing is mutated, so callers can recompute on every render.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Sequence

from .defaults import UNCATEGORIZED, UNTAGGED
from .models import Category, DailyExpense, RecurringExpense

__all__ = [
    "Breakdown",
    "BudgetSummary",
    "CumulativePoint",
    "DailyTotal",
    "GroupTotal",
    "MonthlySummary",
    "category_breakdown",
    "category_key",
    "cumulative_series",
    "daily_totals",
    "filter_month",
    "group_totals",
    "month_start",
    "sum_amounts",
    "summarize_budget",
    "summarize_month",
    "tag_breakdown",
    "tag_key",
    "with_percentages",
]

ZERO = Decimal("0")


@dataclass(frozen=True)
class GroupTotal:
    name: str
    total: Decimal
    count: int


@dataclass(frozen=True)
class Breakdown:
    name: str
    total: Decimal
    count: int
    percentage: float


@dataclass(frozen=True)
class DailyTotal:
    day: date
    total: Decimal


@dataclass(frozen=True)
class CumulativePoint:
    day: date
    total: Decimal
    cumulative: Decimal


@dataclass(frozen=True)
class BudgetSummary:
    total_budget: Decimal
    total_spent: Decimal
    over_budget: List[str] = field(default_factory=list)

    @property
    def remaining(self) -> Decimal:
        return self.total_budget - self.total_spent

    @property
    def progress(self) -> float:
        if self.total_budget <= 0:
            return 0.0
        return min(float(self.total_spent / self.total_budget), 1.0)


@dataclass(frozen=True)
class MonthlySummary:
    month: date
    total: Decimal
    count: int
    tags: List[Breakdown]
    categories: List[Breakdown]
    daily: List[DailyTotal]
    cumulative: List[CumulativePoint]

    @property
    def is_empty(self) -> bool:
        return self.count == 0


def month_start(reference: date) -> date:
    return date(reference.year, reference.month, 1)


def filter_month(expenses: Iterable[DailyExpense], reference: date) -> List[DailyExpense]:
    """Return expenses in the same calendar year and month as ``reference``, in stored order."""
    return [
        expense
        for expense in expenses
        if expense.date.year == reference.year and expense.date.month == reference.month
    ]


def sum_amounts(expenses: Iterable[DailyExpense]) -> Decimal:
    return sum((expense.amount for expense in expenses), start=ZERO)


def group_totals(
    expenses: Iterable[DailyExpense], key: Callable[[DailyExpense], str]
) -> List[GroupTotal]:
    """Sum amounts per group, largest first; ties keep the order groups were first seen."""
    totals: Dict[str, Decimal] = {}
    counts: Dict[str, int] = {}
    for expense in expenses:
        name = key(expense)
        totals[name] = totals.get(name, ZERO) + expense.amount
        counts[name] = counts.get(name, 0) + 1
    groups = [GroupTotal(name, total, counts[name]) for name, total in totals.items()]
    # sorted() stays stable with reverse=True.
    return sorted(groups, key=lambda group: group.total, reverse=True)


def with_percentages(groups: Sequence[GroupTotal]) -> List[Breakdown]:
    """Attach each group's share of the overall total; empty when the total is zero."""
    overall = sum((group.total for group in groups), start=ZERO)
    if overall <= 0:
        return []
    return [
        Breakdown(
            name=group.name,
            total=group.total,
            count=group.count,
            percentage=float(group.total / overall * 100),
        )
        for group in groups
    ]


def tag_key(expense: DailyExpense) -> str:
    return expense.tag or UNTAGGED


def category_key(categories: Iterable[Category]) -> Callable[[DailyExpense], str]:
    """Build a key function mapping an expense to its large class.

    Entries without a category, or whose large/medium pair no longer names a
    known category, fall into the uncategorized bucket.
    """
    known = {
        (category.large_class.lower(), category.medium_class.lower()): category.large_class
        for category in categories
    }

    def key(expense: DailyExpense) -> str:
        if not expense.large_class:
            return UNCATEGORIZED
        pair = (expense.large_class.lower(), (expense.medium_class or "").lower())
        return known.get(pair, UNCATEGORIZED)

    return key


def tag_breakdown(expenses: Iterable[DailyExpense]) -> List[Breakdown]:
    return with_percentages(group_totals(expenses, tag_key))


def category_breakdown(
    expenses: Iterable[DailyExpense], categories: Iterable[Category]
) -> List[Breakdown]:
    return with_percentages(group_totals(expenses, category_key(categories)))


def daily_totals(expenses: Iterable[DailyExpense]) -> List[DailyTotal]:
    """Per-day sums for days that have spending, in ascending date order."""
    totals: Dict[date, Decimal] = {}
    for expense in expenses:
        totals[expense.date] = totals.get(expense.date, ZERO) + expense.amount
    return [DailyTotal(day, totals[day]) for day in sorted(totals)]


def cumulative_series(expenses: Iterable[DailyExpense], month: date) -> List[CumulativePoint]:
    """Running total across every day of ``month``, including days with no spending."""
    first = month_start(month)
    days_in_month = calendar.monthrange(first.year, first.month)[1]
    per_day = {point.day: point.total for point in daily_totals(filter_month(expenses, first))}

    series: List[CumulativePoint] = []
    running = ZERO
    for offset in range(days_in_month):
        day = first + timedelta(days=offset)
        total = per_day.get(day, ZERO)
        running += total
        series.append(CumulativePoint(day=day, total=total, cumulative=running))
    return series


def summarize_budget(recurring: Iterable[RecurringExpense]) -> BudgetSummary:
    lines = list(recurring)
    return BudgetSummary(
        total_budget=sum((line.budget for line in lines), start=ZERO),
        total_spent=sum((line.actual_spent for line in lines), start=ZERO),
        over_budget=[line.name for line in lines if line.over_budget],
    )


def summarize_month(
    expenses: Iterable[DailyExpense], categories: Iterable[Category], month: date
) -> MonthlySummary:
    in_month = filter_month(expenses, month)
    if not in_month:
        return MonthlySummary(
            month=month_start(month),
            total=ZERO,
            count=0,
            tags=[],
            categories=[],
            daily=[],
            cumulative=cumulative_series([], month),
        )
    return MonthlySummary(
        month=month_start(month),
        total=sum_amounts(in_month),
        count=len(in_month),
        tags=tag_breakdown(in_month),
        categories=category_breakdown(in_month, categories),
        daily=daily_totals(in_month),
        cumulative=cumulative_series(in_month, month),
    )
