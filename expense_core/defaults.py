"""Seed data used when no persisted collection exists yet."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional
from uuid import NAMESPACE_URL, uuid5

from .models import Category, RecurringExpense, Tag

__all__ = [
    "CATEGORY_COLORS",
    "UNCATEGORIZED",
    "UNTAGGED",
    "default_categories",
    "default_recurring_expenses",
    "default_tags",
]

CATEGORY_COLORS = ("red", "blue", "green", "orange", "yellow", "pink", "purple", "gray")

UNTAGGED = "Untagged"
UNCATEGORIZED = "Uncategorized"

_SEED_NAMESPACE = uuid5(NAMESPACE_URL, "expense-manager/seed")


def _seed_id(*parts: str) -> str:
    # Stable ids so a reseeded collection compares equal to the previous seed.
    return str(uuid5(_SEED_NAMESPACE, "/".join(parts)))


_CATEGORY_SEED = [
    ("Housing", "Rent", "🏠", "orange"),
    ("Utilities", "Electricity", "⚡", "yellow"),
    ("Utilities", "Gas", "🔥", "yellow"),
    ("Utilities", "Water", "💧", "blue"),
    ("Food", "Groceries", "🛒", "green"),
    ("Food", "Dining Out", "🍽️", "green"),
    ("Transport", "Train", "🚆", "blue"),
    ("Transport", "Taxi", "🚕", "blue"),
    ("Beauty", "Haircut", "💇", "pink"),
    ("Education", "Books", "📚", "purple"),
    ("Medical", "Clinic", "🏥", "red"),
    ("Entertainment", "Movies", "🎬", "purple"),
    ("Shopping", "Clothing", "👕", "pink"),
    ("Other", "Miscellaneous", "📦", "gray"),
]

_RECURRING_SEED = [
    ("Housing", "100000", "98000"),
    ("Electricity", "5000", "4800"),
    ("Gas", "4000", "3900"),
    ("Mobile", "5000", "5000"),
    ("Water", "3000", "2950"),
    ("Newspaper", "2000", "2000"),
    ("Haircut", "5000", None),
]

_TAG_SEED = [
    ("Supermarket", "#22C55E"),
    ("Convenience Store", "#3B82F6"),
    ("Restaurant", "#EF4444"),
    ("Cafe", "#A16207"),
    ("Izakaya", "#A855F7"),
    ("Transport", "#06B6D4"),
    ("Entertainment", "#F97316"),
    ("Shopping", "#EC4899"),
    ("Other", "#6B7280"),
]


def default_categories() -> List[Category]:
    return [
        Category(
            id=_seed_id("category", large, medium),
            large_class=large,
            medium_class=medium,
            icon=icon,
            color=color,
        )
        for large, medium, icon, color in _CATEGORY_SEED
    ]


def default_recurring_expenses() -> List[RecurringExpense]:
    def _last(value: Optional[str]) -> Optional[Decimal]:
        return Decimal(value) if value is not None else None

    return [
        RecurringExpense(
            id=_seed_id("recurring", name),
            name=name,
            budget=Decimal(budget),
            actual_spent=Decimal("0"),
            last_month_spent=_last(last_month),
        )
        for name, budget, last_month in _RECURRING_SEED
    ]


def default_tags() -> List[Tag]:
    return [
        Tag(id=_seed_id("tag", name), name=name, color_hex=color)
        for name, color in _TAG_SEED
    ]
