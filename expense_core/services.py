"""Framework-agnostic store for the expense manager collections."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar, Union
from uuid import uuid4

from . import aggregation
from .defaults import default_categories, default_recurring_expenses, default_tags
from .events import ADDED, DELETED, PERSISTENCE_FAILED, RESET, UPDATED, EventBus, StoreEvent
from .exceptions import PersistenceError, RecordNotFoundError
from .models import Category, DailyExpense, RecurringExpense, Tag
from .storage import JSONStorage

logger = logging.getLogger(__name__)

R = TypeVar("R", DailyExpense, RecurringExpense, Category, Tag)

DAILY_EXPENSES = "daily_expenses"
RECURRING_EXPENSES = "recurring_expenses"
CATEGORIES = "categories"
TAGS = "tags"


class CollectionService(Generic[R]):
    """Owns one ordered collection and writes it back after every mutation.

    Records are addressed by id; positions are resolved against the
    authoritative, unfiltered list at call time. Unknown ids make
    ``update``/``delete`` a no-op rather than an error.
    """

    resource: str
    record_type: Type[R]

    def __init__(
        self,
        storage: JSONStorage,
        events: Optional[EventBus] = None,
        lock: Optional[threading.RLock] = None,
    ) -> None:
        self._storage = storage
        self._events = events if events is not None else EventBus()
        self._lock = lock if lock is not None else threading.RLock()
        self._records: List[R] = []
        self.unsaved = False
        self.load()  # Hydrate in-memory state from persistence on construction.

    # Public API -----------------------------------------------------------
    def add(self, record: R) -> R:
        with self._lock:
            if not record.id:
                record = replace(record, id=str(uuid4()))
            self._records.append(record)
            self._persist()
            self._events.publish(ADDED, self.resource, record.id)
        return record

    def update(self, record: R) -> bool:
        """Replace the stored record carrying ``record.id``."""
        with self._lock:
            index = self.index_of(record.id)
            if index is None:
                logger.debug("Ignoring update of unknown %s id %s", self.resource, record.id)
                return False
            self._records[index] = record
            self._persist()
            self._events.publish(UPDATED, self.resource, record.id)
        return True

    def delete(self, record_id: str) -> bool:
        with self._lock:
            index = self.index_of(record_id)
            if index is None:
                logger.debug("Ignoring delete of unknown %s id %s", self.resource, record_id)
                return False
            del self._records[index]
            self._persist()
            self._events.publish(DELETED, self.resource, record_id)
        return True

    def get(self, record_id: str) -> R:
        index = self.index_of(record_id)
        if index is None:
            raise RecordNotFoundError(f"{self.record_type.__name__} {record_id} not found")
        return self._records[index]

    def list(self) -> List[R]:
        return list(self._records)

    def index_of(self, record_id: str) -> Optional[int]:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        return None

    def defaults(self) -> List[R]:
        return []

    def load(self) -> None:
        """Load the collection, seeding defaults when it is absent or unreadable."""
        with self._lock:
            try:
                raw_records = self._storage.load(self.resource)
            except PersistenceError as exc:
                logger.error("Error loading %s, using defaults: %s", self.resource, exc)
                self._records = self.defaults()
                return

            if raw_records is None:
                self._records = self.defaults()
                if self._records:
                    logger.info("No %s found, seeding defaults", self.resource)
                    self._persist()
                return

            try:
                self._records = [self.record_type.from_dict(payload) for payload in raw_records]
                missing_ids = any(not payload.get("id") for payload in raw_records)
            except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as exc:
                logger.error("Error decoding %s, using defaults: %s", self.resource, exc)
                self._records = self.defaults()
                return
            logger.info("Loaded %d %s", len(self._records), self.resource)
            if missing_ids:
                # Ids generated on read must survive a restart.
                logger.info("Assigned ids to %s, saving", self.resource)
                self._persist()

    def reset(self) -> None:
        with self._lock:
            self._records = self.defaults()
            self._persist()

    def __len__(self) -> int:
        return len(self._records)

    # Internal helpers -----------------------------------------------------
    def _persist(self) -> bool:
        try:
            self._storage.save(self.resource, [record.to_dict() for record in self._records])
        except PersistenceError as exc:
            # The in-memory mutation stands; the presentation layer is told via an event.
            self.unsaved = True
            logger.error("Error saving %s: %s", self.resource, exc)
            self._events.publish(PERSISTENCE_FAILED, self.resource)
            return False
        self.unsaved = False
        logger.debug("%s saved: %d items", self.resource, len(self._records))
        return True


class ExpenseService(CollectionService[DailyExpense]):
    """Daily expenses; there is no meaningful default set."""

    resource = DAILY_EXPENSES
    record_type = DailyExpense

    def for_month(self, reference: date) -> List[DailyExpense]:
        return aggregation.filter_month(self._records, reference)


class RecurringExpenseService(CollectionService[RecurringExpense]):
    resource = RECURRING_EXPENSES
    record_type = RecurringExpense

    def defaults(self) -> List[RecurringExpense]:
        return default_recurring_expenses()

    def total_budget(self) -> Decimal:
        return sum((line.budget for line in self._records), start=Decimal("0"))

    def total_spent(self) -> Decimal:
        return sum((line.actual_spent for line in self._records), start=Decimal("0"))


class CategoryService(CollectionService[Category]):
    resource = CATEGORIES
    record_type = Category

    def defaults(self) -> List[Category]:
        return default_categories()

    def find(self, large_class: str, medium_class: str) -> Optional[Category]:
        for category in self._records:
            if category.matches(large_class, medium_class):
                return category
        return None

    def large_classes(self) -> List[str]:
        return sorted({category.large_class for category in self._records})

    def medium_classes(self, large_class: str) -> List[Category]:
        return sorted(
            (category for category in self._records if category.large_class == large_class),
            key=lambda category: category.medium_class,
        )


class TagService(CollectionService[Tag]):
    resource = TAGS
    record_type = Tag

    def defaults(self) -> List[Tag]:
        return default_tags()

    def find_by_name(self, name: str) -> Optional[Tag]:
        canonical = name.strip().lower()
        for tag in self._records:
            if tag.name.lower() == canonical:
                return tag
        return None

    def names(self) -> List[str]:
        return sorted({tag.name for tag in self._records})


class ExpenseStore:
    """Single authoritative owner of the four collections.

    Construct one instance at startup and pass it to whatever builds the
    presentation layer. Subscribers registered through :meth:`subscribe` are
    called after each mutation has been applied in memory.
    """

    def __init__(self, storage: JSONStorage) -> None:
        self._storage = storage
        self._lock = threading.RLock()
        self._events = EventBus()
        self.expenses = ExpenseService(storage, self._events, self._lock)
        self.recurring = RecurringExpenseService(storage, self._events, self._lock)
        self.categories = CategoryService(storage, self._events, self._lock)
        self.tags = TagService(storage, self._events, self._lock)

    @property
    def collections(self) -> List[CollectionService[Any]]:
        return [self.expenses, self.recurring, self.categories, self.tags]

    # Observation ----------------------------------------------------------
    def subscribe(self, handler: Callable[[StoreEvent], None]) -> Callable[[], None]:
        return self._events.subscribe(handler)

    @property
    def unsaved_resources(self) -> List[str]:
        return [service.resource for service in self.collections if service.unsaved]

    @property
    def has_unsaved_changes(self) -> bool:
        return bool(self.unsaved_resources)

    # Queries --------------------------------------------------------------
    def query_month(self, reference: date) -> List[DailyExpense]:
        return self.expenses.for_month(reference)

    def category_total(self, category: Union[Category, str], month: date) -> Decimal:
        """Sum the month's expenses filed under ``category``.

        A :class:`Category` matches on its large and medium class; a plain
        string matches the large class only.
        """
        if isinstance(category, Category):
            matches = [
                expense
                for expense in self.query_month(month)
                if category.matches(expense.large_class, expense.medium_class)
            ]
        else:
            canonical = category.strip().lower()
            matches = [
                expense
                for expense in self.query_month(month)
                if (expense.large_class or "").lower() == canonical
            ]
        return aggregation.sum_amounts(matches)

    def tag_total(self, tag_name: str, month: date) -> Decimal:
        return aggregation.sum_amounts(
            expense for expense in self.query_month(month) if expense.tag == tag_name
        )

    def tag_breakdown(self, month: date) -> List[aggregation.Breakdown]:
        return aggregation.tag_breakdown(self.query_month(month))

    def category_breakdown(self, month: date) -> List[aggregation.Breakdown]:
        return aggregation.category_breakdown(self.query_month(month), self.categories.list())

    def daily_breakdown(self, month: date) -> List[aggregation.DailyTotal]:
        return aggregation.daily_totals(self.query_month(month))

    def cumulative_series(self, month: date) -> List[aggregation.CumulativePoint]:
        return aggregation.cumulative_series(self.query_month(month), month)

    def monthly_summary(self, month: date) -> aggregation.MonthlySummary:
        return aggregation.summarize_month(self.expenses.list(), self.categories.list(), month)

    def total_recurring_budget(self) -> Decimal:
        return self.recurring.total_budget()

    def total_recurring_spent(self) -> Decimal:
        return self.recurring.total_spent()

    def budget_summary(self) -> aggregation.BudgetSummary:
        return aggregation.summarize_budget(self.recurring.list())

    def available_tag_names(self) -> List[str]:
        return self.tags.names()

    # Maintenance ----------------------------------------------------------
    def clear_all(self) -> None:
        """Empty the expenses and reseed the other collections, persisting all four."""
        with self._lock:
            for service in self.collections:
                service.reset()
            self._events.publish(RESET)
        logger.info("All data cleared")

    def refresh(self) -> None:
        """Reload every collection from persistence."""
        with self._lock:
            for service in self.collections:
                service.load()
            self._events.publish(RESET)

    def snapshot(self) -> Dict[str, List[Dict[str, object]]]:
        """Return a serialisable snapshot of every collection, useful for exports."""
        return {
            service.resource: [record.to_dict() for record in service.list()]
            for service in self.collections
        }
