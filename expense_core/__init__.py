"""Core data management and aggregation package for the expense manager."""

from .events import StoreEvent
from .exceptions import PersistenceError, RecordNotFoundError, ValidationError
from .models import Category, DailyExpense, RecurringExpense, Tag
from .services import (
    CategoryService,
    ExpenseService,
    ExpenseStore,
    RecurringExpenseService,
    TagService,
)
from .storage import JSONStorage

__all__ = [
    "Category",
    "DailyExpense",
    "RecurringExpense",
    "Tag",
    "CategoryService",
    "ExpenseService",
    "ExpenseStore",
    "RecurringExpenseService",
    "TagService",
    "JSONStorage",
    "StoreEvent",
    "PersistenceError",
    "ValidationError",
    "RecordNotFoundError",
]
