"""Validation helpers shared by the presentation surfaces."""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional

from .exceptions import ValidationError
from .models import parse_date

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def _quantize_two_decimals(amount: Decimal) -> Decimal:
    """Round the amount to two decimal places using HALF_UP rounding."""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def sanitize_amount_input(raw: object) -> str:
    """Strip grouping commas, whitespace and a leading yen sign from user input."""
    if raw is None:
        return ""
    return str(raw).replace(",", "").replace("¥", "").strip()


def parse_amount(raw: object, field: str) -> Decimal:
    """Convert raw input to a non-negative Decimal with two fraction digits."""
    cleaned = sanitize_amount_input(raw)
    if not cleaned:
        raise ValidationError(f"{field} is required")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValidationError(f"{field} must be a numeric value") from exc

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must not be negative")

    try:
        return _quantize_two_decimals(amount)
    except InvalidOperation as exc:
        raise ValidationError(f"{field} is too large") from exc


def parse_optional_amount(raw: object, field: str) -> Optional[Decimal]:
    if raw is None or sanitize_amount_input(raw) == "":
        return None
    return parse_amount(raw, field)


def validate_required_str(value: object, field: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_optional_str(value: object, field: str, max_length: int) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return validate_required_str(value, field, max_length)


def validate_date(value: object, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return parse_date(value)
        except ValueError as exc:
            raise ValidationError(f"{field} must be an ISO 8601 date (YYYY-MM-DD)") from exc
    raise ValidationError(f"{field} must be a date or ISO 8601 string")


def parse_month(value: object, field: str = "month") -> date:
    """Parse ``YYYY-MM`` (or any ISO date) into the first day of that month."""
    if isinstance(value, str):
        match = MONTH_PATTERN.fullmatch(value.strip())
        if match:
            year, month = int(match.group(1)), int(match.group(2))
            if not 1 <= month <= 12:
                raise ValidationError(f"{field} must be in YYYY-MM format")
            return date(year, month, 1)
    reference = validate_date(value, field)
    return date(reference.year, reference.month, 1)


def validate_enum(value: object, field: str, allowed: Iterable[str]) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    canonical = value.strip().lower()
    allowed = tuple(allowed)
    if canonical not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(sorted(allowed))}")
    return canonical


def validate_hex_color(value: object, field: str) -> str:
    if not isinstance(value, str) or not HEX_COLOR_PATTERN.fullmatch(value.strip()):
        raise ValidationError(f"{field} must be a hex colour such as #3B82F6")
    return value.strip().upper()
