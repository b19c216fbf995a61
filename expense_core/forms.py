"""Turn user-supplied payloads into domain records.

This is the validation the presentation layer performs before it calls the
store: unparseable amounts, empty names and duplicate category or tag names
are rejected here with :class:`ValidationError` and never reach the store.
Payload keys follow the persisted field names (``tagNote``, ``largeClass``...).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Optional

from .defaults import CATEGORY_COLORS
from .exceptions import ValidationError
from .models import DEFAULT_TAG_COLOR, Category, DailyExpense, RecurringExpense, Tag
from .validators import (
    parse_amount,
    parse_optional_amount,
    validate_date,
    validate_enum,
    validate_hex_color,
    validate_optional_str,
    validate_required_str,
)

__all__ = [
    "build_category",
    "build_daily_expense",
    "build_recurring_expense",
    "build_tag",
    "merge_changes",
]


def merge_changes(existing: object, changes: Dict[str, object]) -> Dict[str, object]:
    """Overlay ``changes`` on a record's serialised form to support partial updates."""
    return {**existing.to_dict(), **changes}  # type: ignore[attr-defined]


def build_daily_expense(
    payload: Dict[str, object], *, current: Optional[DailyExpense] = None
) -> DailyExpense:
    large_class = validate_optional_str(payload.get("largeClass"), "largeClass", 50)
    medium_class = validate_optional_str(payload.get("mediumClass"), "mediumClass", 50)
    if medium_class and not large_class:
        raise ValidationError("largeClass is required when mediumClass is given")

    raw_date = payload.get("date")
    return DailyExpense(
        id=current.id if current else "",
        amount=parse_amount(payload.get("amount"), "amount"),
        date=validate_date(raw_date, "date") if raw_date is not None else date.today(),
        tag=validate_optional_str(payload.get("tag"), "tag", 30),
        tag_note=validate_optional_str(payload.get("tagNote"), "tagNote", 200) or "",
        large_class=large_class,
        medium_class=medium_class,
    )


def build_recurring_expense(
    payload: Dict[str, object], *, current: Optional[RecurringExpense] = None
) -> RecurringExpense:
    actual_spent = payload.get("actualSpent")
    return RecurringExpense(
        id=current.id if current else "",
        name=validate_required_str(payload.get("name"), "name", 50),
        budget=parse_amount(payload.get("budget"), "budget"),
        actual_spent=(
            parse_amount(actual_spent, "actualSpent") if actual_spent is not None else Decimal("0")
        ),
        last_month_spent=parse_optional_amount(payload.get("lastMonthSpent"), "lastMonthSpent"),
    )


def build_category(
    payload: Dict[str, object],
    existing: Iterable[Category],
    *,
    current: Optional[Category] = None,
) -> Category:
    large_class = validate_required_str(payload.get("largeClass"), "largeClass", 50)
    medium_class = validate_required_str(payload.get("mediumClass"), "mediumClass", 50)

    for category in existing:
        if current and category.id == current.id:
            continue
        if category.matches(large_class, medium_class):
            raise ValidationError(f"Category {large_class} / {medium_class} already exists")

    return Category(
        id=current.id if current else "",
        large_class=large_class,
        medium_class=medium_class,
        icon=validate_optional_str(payload.get("icon"), "icon", 8) or "📦",
        color=validate_enum(payload.get("color", "blue"), "color", CATEGORY_COLORS),
    )


def build_tag(
    payload: Dict[str, object],
    existing: Iterable[Tag],
    *,
    current: Optional[Tag] = None,
) -> Tag:
    name = validate_required_str(payload.get("name"), "name", 30)
    canonical = name.lower()

    for tag in existing:
        if current and tag.id == current.id:
            continue
        if tag.name.lower() == canonical:
            raise ValidationError("Tag name must be unique")

    color = payload.get("colorHex")
    return Tag(
        id=current.id if current else "",
        name=name,
        color_hex=validate_hex_color(color, "colorHex") if color else DEFAULT_TAG_COLOR,
    )
