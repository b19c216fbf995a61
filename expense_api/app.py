"""Flask REST API exposing the expense store."""

from __future__ import annotations

import os
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from expense_core import forms
from expense_core.aggregation import Breakdown, MonthlySummary
from expense_core.exceptions import RecordNotFoundError, ValidationError
from expense_core.logging_config import setup_logging
from expense_core.services import ExpenseStore
from expense_core.storage import JSONStorage
from expense_core.validators import parse_month

UNSAVED_WARNING = "Changes may not be saved"


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def _breakdown_to_dict(item: Breakdown) -> Dict[str, Any]:
    return {
        "name": item.name,
        "total": _money(item.total),
        "count": item.count,
        "percentage": round(item.percentage, 2),
    }


def summary_to_dict(summary: MonthlySummary) -> Dict[str, Any]:
    return {
        "month": summary.month.strftime("%Y-%m"),
        "total": _money(summary.total),
        "count": summary.count,
        "empty": summary.is_empty,
        "tags": [_breakdown_to_dict(item) for item in summary.tags],
        "categories": [_breakdown_to_dict(item) for item in summary.categories],
        "daily": [
            {"date": point.day.isoformat(), "total": _money(point.total)}
            for point in summary.daily
        ],
        "cumulative": [
            {"date": point.day.isoformat(), "cumulative": _money(point.cumulative)}
            for point in summary.cumulative
        ],
    }


def create_app(data_dir: Optional[Path] = None, store: Optional[ExpenseStore] = None) -> Flask:
    app = Flask(__name__)

    env_name = os.getenv("EXPENSE_MANAGER_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    else:
        allowed_origins = os.getenv("EXPENSE_MANAGER_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)
        else:
            CORS(app)

    setup_logging(os.getenv("EXPENSE_MANAGER_LOG_LEVEL", "INFO"))

    if store is None:
        resolved_dir = data_dir or os.getenv("EXPENSE_MANAGER_DATA_DIR") or "data"
        store = ExpenseStore(JSONStorage(Path(resolved_dir)))
    app.extensions["expense_store"] = store

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _mutation(payload: Dict[str, Any], status: int = 200):
        if store.has_unsaved_changes:
            payload = {**payload, "warning": UNSAVED_WARNING}
        return _success(payload, status)

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _month_arg() -> date:
        raw = request.args.get("month")
        if not raw:
            return date.today()
        return parse_month(raw)

    def _items(records: List[Any]) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in records]

    # Daily expenses -------------------------------------------------------
    @app.get("/expenses")
    def list_expenses():
        if request.args.get("month"):
            expenses = store.query_month(_month_arg())
        else:
            expenses = store.expenses.list()
        total = sum((expense.amount for expense in expenses), start=Decimal("0"))
        return _success({"items": _items(expenses), "total": _money(total)})

    @app.post("/expenses")
    def create_expense():
        expense = store.expenses.add(forms.build_daily_expense(_json_body()))
        return _mutation(expense.to_dict(), 201)

    @app.get("/expenses/<expense_id>")
    def get_expense(expense_id: str):
        return _success(store.expenses.get(expense_id).to_dict())

    @app.put("/expenses/<expense_id>")
    def update_expense(expense_id: str):
        existing = store.expenses.get(expense_id)
        payload = forms.merge_changes(existing, _json_body())
        expense = forms.build_daily_expense(payload, current=existing)
        store.expenses.update(expense)
        return _mutation(expense.to_dict())

    @app.delete("/expenses/<expense_id>")
    def delete_expense(expense_id: str):
        store.expenses.delete(expense_id)
        return _success({}, 204)

    # Recurring expenses ---------------------------------------------------
    @app.get("/recurring")
    def list_recurring():
        return _success({"items": _items(store.recurring.list())})

    @app.post("/recurring")
    def create_recurring():
        line = store.recurring.add(forms.build_recurring_expense(_json_body()))
        return _mutation(line.to_dict(), 201)

    @app.put("/recurring/<line_id>")
    def update_recurring(line_id: str):
        existing = store.recurring.get(line_id)
        payload = forms.merge_changes(existing, _json_body())
        line = forms.build_recurring_expense(payload, current=existing)
        store.recurring.update(line)
        return _mutation(line.to_dict())

    @app.delete("/recurring/<line_id>")
    def delete_recurring(line_id: str):
        store.recurring.delete(line_id)
        return _success({}, 204)

    # Categories -----------------------------------------------------------
    @app.get("/categories")
    def list_categories():
        return _success({
            "items": _items(store.categories.list()),
            "largeClasses": store.categories.large_classes(),
        })

    @app.post("/categories")
    def create_category():
        category = forms.build_category(_json_body(), store.categories.list())
        category = store.categories.add(category)
        return _mutation(category.to_dict(), 201)

    @app.put("/categories/<category_id>")
    def update_category(category_id: str):
        existing = store.categories.get(category_id)
        payload = forms.merge_changes(existing, _json_body())
        category = forms.build_category(payload, store.categories.list(), current=existing)
        store.categories.update(category)
        return _mutation(category.to_dict())

    @app.delete("/categories/<category_id>")
    def delete_category(category_id: str):
        store.categories.delete(category_id)
        return _success({}, 204)

    # Tags -----------------------------------------------------------------
    @app.get("/tags")
    def list_tags():
        return _success({
            "items": _items(store.tags.list()),
            "names": store.available_tag_names(),
        })

    @app.post("/tags")
    def create_tag():
        tag = store.tags.add(forms.build_tag(_json_body(), store.tags.list()))
        return _mutation(tag.to_dict(), 201)

    @app.put("/tags/<tag_id>")
    def update_tag(tag_id: str):
        existing = store.tags.get(tag_id)
        payload = forms.merge_changes(existing, _json_body())
        tag = forms.build_tag(payload, store.tags.list(), current=existing)
        store.tags.update(tag)
        return _mutation(tag.to_dict())

    @app.delete("/tags/<tag_id>")
    def delete_tag(tag_id: str):
        # Expenses keep the tag name; references are weak and are not cleared.
        store.tags.delete(tag_id)
        return _success({}, 204)

    # Derived views --------------------------------------------------------
    @app.get("/summary")
    def summary():
        return _success(summary_to_dict(store.monthly_summary(_month_arg())))

    @app.get("/budget")
    def budget():
        summary = store.budget_summary()
        return _success({
            "totalBudget": _money(summary.total_budget),
            "totalSpent": _money(summary.total_spent),
            "remaining": _money(summary.remaining),
            "progress": round(summary.progress, 4),
            "overBudget": summary.over_budget,
        })

    @app.get("/export")
    def export():
        return _success(store.snapshot())

    @app.post("/reset")
    def reset():
        store.clear_all()
        return _mutation({"status": "reset"})

    return app
