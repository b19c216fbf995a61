"""Data models for the expense manager domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import uuid4

__all__ = [
    "Category",
    "DailyExpense",
    "RecurringExpense",
    "Tag",
    "format_yen",
    "parse_date",
]

DEFAULT_TAG_COLOR = "#3B82F6"


def format_yen(amount: Decimal) -> str:
    """Render an amount the way the app displays it, e.g. ``¥1,200``."""
    return f"¥{amount:,.0f}"


def parse_date(value: str) -> date:
    """Parse an ISO 8601 date, or a full timestamp truncated to its calendar date."""
    value = value.strip()
    if len(value) == 10:
        return date.fromisoformat(value)
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    # The wall-clock date is kept as written; no timezone normalisation.
    return datetime.fromisoformat(value).date()


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return _decimal(value)


def _record_id(data: Dict[str, Any]) -> str:
    return data.get("id") or str(uuid4())


@dataclass(frozen=True)
class Category:
    large_class: str
    medium_class: str
    icon: str = "📦"
    color: str = "blue"
    id: str = ""

    def matches(self, large_class: Optional[str], medium_class: Optional[str]) -> bool:
        return (
            self.large_class.lower() == (large_class or "").lower()
            and self.medium_class.lower() == (medium_class or "").lower()
        )

    @property
    def label(self) -> str:
        return f"{self.large_class} / {self.medium_class}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "largeClass": self.large_class,
            "mediumClass": self.medium_class,
            "icon": self.icon,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            id=_record_id(data),
            large_class=data["largeClass"],
            medium_class=data["mediumClass"],
            icon=data.get("icon", "📦"),
            color=data.get("color", "blue"),
        )


@dataclass(frozen=True)
class DailyExpense:
    """One spending event.

    ``tag`` is a weak reference to a :class:`Tag` by name and the optional
    ``large_class``/``medium_class`` pair a weak reference to a
    :class:`Category`. Neither is checked against the owning collections.
    """

    amount: Decimal
    date: date
    tag: Optional[str] = None
    tag_note: str = ""
    large_class: Optional[str] = None
    medium_class: Optional[str] = None
    id: str = ""

    @property
    def formatted_amount(self) -> str:
        return format_yen(self.amount)

    @property
    def formatted_date(self) -> str:
        return self.date.strftime("%b %d, %Y")

    @property
    def has_category(self) -> bool:
        return bool(self.large_class)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense to JSON-friendly natives."""
        return {
            "id": self.id,
            "amount": f"{self.amount:.2f}",
            "tag": self.tag,
            "tagNote": self.tag_note,
            "date": self.date.isoformat(),
            "largeClass": self.large_class,
            "mediumClass": self.medium_class,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyExpense":
        """Hydrate a DailyExpense, defaulting fields missing from older files."""
        return cls(
            id=_record_id(data),
            amount=_decimal(data["amount"]),
            tag=data.get("tag"),
            tag_note=data.get("tagNote") or "",
            date=parse_date(data["date"]),
            large_class=data.get("largeClass"),
            medium_class=data.get("mediumClass"),
        )


@dataclass(frozen=True)
class RecurringExpense:
    name: str
    budget: Decimal
    actual_spent: Decimal = Decimal("0")
    last_month_spent: Optional[Decimal] = None
    id: str = ""

    @property
    def remaining(self) -> Decimal:
        return self.budget - self.actual_spent

    @property
    def over_budget(self) -> bool:
        return self.actual_spent > self.budget

    @property
    def progress(self) -> float:
        """Share of the budget used, capped at 1.0."""
        if self.budget <= 0:
            return 0.0
        return min(float(self.actual_spent / self.budget), 1.0)

    @property
    def formatted_last_month_spent(self) -> str:
        if self.last_month_spent is None:
            return "-"
        return format_yen(self.last_month_spent)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "budget": f"{self.budget:.2f}",
            "actualSpent": f"{self.actual_spent:.2f}",
            "lastMonthSpent": (
                f"{self.last_month_spent:.2f}" if self.last_month_spent is not None else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecurringExpense":
        return cls(
            id=_record_id(data),
            name=data["name"],
            budget=_decimal(data["budget"]),
            actual_spent=_decimal(data.get("actualSpent", "0")),
            last_month_spent=_optional_decimal(data.get("lastMonthSpent")),
        )


@dataclass(frozen=True)
class Tag:
    name: str
    color_hex: str = DEFAULT_TAG_COLOR
    id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "colorHex": self.color_hex}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        return cls(
            id=_record_id(data),
            name=data["name"],
            color_hex=data.get("colorHex") or DEFAULT_TAG_COLOR,
        )
