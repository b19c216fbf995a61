"""Shared fixtures for the expense manager tests.

Every test gets its own temporary data directory so nothing touches ./data.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List

import pytest

from expense_core.events import StoreEvent
from expense_core.exceptions import PersistenceError
from expense_core.logging_config import ROOT_LOGGER
from expense_core.models import DailyExpense
from expense_core.services import ExpenseStore
from expense_core.storage import JSONStorage


class FailingStorage(JSONStorage):
    """JSONStorage whose writes can be switched off to simulate an unavailable disk."""

    def __init__(self, base_path: Path) -> None:
        super().__init__(base_path)
        self.fail_writes = False

    def save(self, key: str, records: Iterable[Dict[str, Any]]) -> None:
        if self.fail_writes:
            raise PersistenceError(f"disk unavailable while writing {key}")
        super().save(key, records)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by setup_logging so they don't outlive captured streams."""
    yield
    package_logger = logging.getLogger(ROOT_LOGGER)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def storage(data_dir: Path) -> JSONStorage:
    return JSONStorage(data_dir)


@pytest.fixture
def failing_storage(data_dir: Path) -> FailingStorage:
    return FailingStorage(data_dir)


@pytest.fixture
def store(storage: JSONStorage) -> ExpenseStore:
    return ExpenseStore(storage)


@pytest.fixture
def events(store: ExpenseStore) -> List[StoreEvent]:
    received: List[StoreEvent] = []
    store.subscribe(received.append)
    return received


def make_expense(amount: str, day: date, tag: str = None, **extra: Any) -> DailyExpense:
    return DailyExpense(amount=Decimal(amount), date=day, tag=tag, **extra)


@pytest.fixture
def november_store(store: ExpenseStore) -> ExpenseStore:
    """Store holding the three-expense November/December scenario."""
    store.expenses.add(make_expense("500", date(2025, 11, 1), "Cafe"))
    store.expenses.add(make_expense("1200", date(2025, 11, 2), "Supermarket"))
    store.expenses.add(make_expense("800", date(2025, 12, 1), "Cafe"))
    return store
