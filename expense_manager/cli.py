"""Console interface for the expense manager."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

from expense_core import forms
from expense_core.exceptions import RecordNotFoundError, ValidationError
from expense_core.logging_config import setup_logging
from expense_core.models import Category, DailyExpense, RecurringExpense, Tag, format_yen
from expense_core.services import ExpenseStore
from expense_core.storage import JSONStorage
from expense_core.validators import parse_month

DATE_FORMAT = "%Y-%m-%d"


def _parse_date(value: str) -> str:
    try:
        date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid date '{value}'. Expected format YYYY-MM-DD."
        ) from exc
    return value


def _parse_month(value: str) -> date:
    try:
        return parse_month(value)
    except ValidationError as exc:
        raise argparse.ArgumentTypeError(f"Invalid month '{value}'. Expected YYYY-MM.") from exc


def _cleaned(values: Dict[str, object]) -> Dict[str, object]:
    return {k: v for k, v in values.items() if v is not None}


def _format_expense(expense: DailyExpense) -> str:
    category = (
        f"{expense.large_class} / {expense.medium_class or '-'}" if expense.has_category else "-"
    )
    return (
        f"[{expense.id}] {expense.date.strftime(DATE_FORMAT)} {expense.formatted_amount}\n"
        f"  Tag: {expense.tag or '-'} | Category: {category}\n"
        f"  Note: {expense.tag_note or '-'}\n"
    )


def _format_recurring(line: RecurringExpense) -> str:
    status = "OVER BUDGET" if line.over_budget else f"{format_yen(line.remaining)} left"
    return (
        f"[{line.id}] {line.name}: {format_yen(line.actual_spent)} / {format_yen(line.budget)}"
        f" ({status}) | Last month: {line.formatted_last_month_spent}"
    )


def _format_category(category: Category) -> str:
    return f"[{category.id}] {category.icon} {category.label} ({category.color})"


def _format_tag(tag: Tag) -> str:
    return f"[{tag.id}] {tag.name} {tag.color_hex}"


def _bar(percentage: float, width: int = 20) -> str:
    filled = int(round(percentage / 100 * width))
    return "#" * filled + "." * (width - filled)


def handle_expense(args: argparse.Namespace, store: ExpenseStore) -> None:
    if args.command == "add":
        payload = _cleaned({
            "amount": args.amount,
            "date": args.date,
            "tag": args.tag,
            "tagNote": args.note,
            "largeClass": args.large_class,
            "mediumClass": args.medium_class,
        })
        expense = store.expenses.add(forms.build_daily_expense(payload))
        print("Expense added:\n" + _format_expense(expense))
    elif args.command == "list":
        if args.month is not None:
            expenses = store.query_month(args.month)
        else:
            expenses = store.expenses.list()
        if args.tag:
            expenses = [expense for expense in expenses if expense.tag == args.tag]
        if not expenses:
            print("No expenses found.")
            return
        total = sum((expense.amount for expense in expenses), start=Decimal("0"))
        print(f"Found {len(expenses)} expenses (total {format_yen(total)}):")
        for expense in expenses:
            print(_format_expense(expense))
    elif args.command == "edit":
        existing = store.expenses.get(args.id)
        changes = _cleaned({
            "amount": args.amount,
            "date": args.date,
            "tag": args.tag,
            "tagNote": args.note,
            "largeClass": args.large_class,
            "mediumClass": args.medium_class,
        })
        expense = forms.build_daily_expense(
            forms.merge_changes(existing, changes), current=existing
        )
        store.expenses.update(expense)
        print("Expense updated:\n" + _format_expense(expense))
    elif args.command == "delete":
        store.expenses.get(args.id)
        store.expenses.delete(args.id)
        print(f"Expense {args.id} deleted.")


def handle_recurring(args: argparse.Namespace, store: ExpenseStore) -> None:
    if args.command == "list":
        for line in store.recurring.list():
            print(_format_recurring(line))
    elif args.command == "add":
        payload = _cleaned({
            "name": args.name,
            "budget": args.budget,
            "actualSpent": args.spent,
            "lastMonthSpent": args.last_month,
        })
        line = store.recurring.add(forms.build_recurring_expense(payload))
        print("Recurring expense added:\n" + _format_recurring(line))
    elif args.command == "edit":
        existing = store.recurring.get(args.id)
        changes = _cleaned({
            "name": args.name,
            "budget": args.budget,
            "actualSpent": args.spent,
            "lastMonthSpent": args.last_month,
        })
        line = forms.build_recurring_expense(
            forms.merge_changes(existing, changes), current=existing
        )
        store.recurring.update(line)
        print("Recurring expense updated:\n" + _format_recurring(line))
    elif args.command == "delete":
        store.recurring.get(args.id)
        store.recurring.delete(args.id)
        print(f"Recurring expense {args.id} deleted.")


def handle_category(args: argparse.Namespace, store: ExpenseStore) -> None:
    if args.command == "list":
        for large_class in store.categories.large_classes():
            print(large_class)
            for category in store.categories.medium_classes(large_class):
                print("  " + _format_category(category))
    elif args.command == "add":
        payload = _cleaned({
            "largeClass": args.large_class,
            "mediumClass": args.medium_class,
            "icon": args.icon,
            "color": args.color,
        })
        category = store.categories.add(forms.build_category(payload, store.categories.list()))
        print("Category added: " + _format_category(category))
    elif args.command == "edit":
        existing = store.categories.get(args.id)
        changes = _cleaned({
            "largeClass": args.large_class,
            "mediumClass": args.medium_class,
            "icon": args.icon,
            "color": args.color,
        })
        category = forms.build_category(
            forms.merge_changes(existing, changes), store.categories.list(), current=existing
        )
        store.categories.update(category)
        print("Category updated: " + _format_category(category))
    elif args.command == "delete":
        store.categories.get(args.id)
        store.categories.delete(args.id)
        print(f"Category {args.id} deleted.")


def handle_tag(args: argparse.Namespace, store: ExpenseStore) -> None:
    if args.command == "list":
        for tag in store.tags.list():
            print(_format_tag(tag))
    elif args.command == "add":
        payload = _cleaned({"name": args.name, "colorHex": args.color})
        tag = store.tags.add(forms.build_tag(payload, store.tags.list()))
        print("Tag added: " + _format_tag(tag))
    elif args.command == "edit":
        existing = store.tags.get(args.id)
        changes = _cleaned({"name": args.name, "colorHex": args.color})
        tag = forms.build_tag(
            forms.merge_changes(existing, changes), store.tags.list(), current=existing
        )
        store.tags.update(tag)
        print("Tag updated: " + _format_tag(tag))
    elif args.command == "delete":
        store.tags.get(args.id)
        store.tags.delete(args.id)
        print(f"Tag {args.id} deleted.")


def handle_summary(args: argparse.Namespace, store: ExpenseStore) -> None:
    summary = store.monthly_summary(args.month or date.today())
    print(f"{summary.month.strftime('%B %Y')}: {format_yen(summary.total)}")
    if summary.is_empty:
        print("No expenses recorded this month.")
        return
    print("By tag:")
    for item in summary.tags:
        print(f"  {item.name:<20} {format_yen(item.total):>12} {_bar(item.percentage)} {int(item.percentage)}%")
    print("By category:")
    for item in summary.categories:
        print(f"  {item.name:<20} {format_yen(item.total):>12} {_bar(item.percentage)} {int(item.percentage)}%")
    print("By day:")
    for point in summary.daily:
        print(f"  {point.day.strftime('%m/%d')} {format_yen(point.total):>12}")


def handle_budget(args: argparse.Namespace, store: ExpenseStore) -> None:
    summary = store.budget_summary()
    print(f"Budget: {format_yen(summary.total_budget)}")
    print(f"Spent:  {format_yen(summary.total_spent)} ({int(summary.progress * 100)}%)")
    print(f"Remaining: {format_yen(summary.remaining)}")
    for name in summary.over_budget:
        print(f"  Over budget: {name}")


def handle_reset(args: argparse.Namespace, store: ExpenseStore) -> None:
    if not args.yes:
        raise ValidationError("Refusing to reset without --yes")
    store.clear_all()
    print("All data cleared.")


def _add_expense_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--tag")
    parser.add_argument("--note")
    parser.add_argument("--large-class")
    parser.add_argument("--medium-class")


def _add_recurring_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--spent")
    parser.add_argument("--last-month")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Expense Manager CLI")
    parser.add_argument(
        "--data-dir",
        default="data",
        type=Path,
        help="Directory to store JSON data (default: ./data)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log store activity")

    subparsers = parser.add_subparsers(dest="entity", required=True)

    expense_parser = subparsers.add_parser("expense", help="Manage daily expenses")
    expense_sub = expense_parser.add_subparsers(dest="command", required=True)

    expense_add = expense_sub.add_parser("add", help="Add a new expense")
    expense_add.add_argument("amount")
    expense_add.add_argument("--date", type=_parse_date)
    _add_expense_fields(expense_add)

    expense_list = expense_sub.add_parser("list", help="List expenses")
    expense_list.add_argument("--month", type=_parse_month)
    expense_list.add_argument("--tag")

    expense_edit = expense_sub.add_parser("edit", help="Edit an existing expense")
    expense_edit.add_argument("id")
    expense_edit.add_argument("--amount")
    expense_edit.add_argument("--date", type=_parse_date)
    _add_expense_fields(expense_edit)

    expense_delete = expense_sub.add_parser("delete", help="Delete an expense")
    expense_delete.add_argument("id")

    recurring_parser = subparsers.add_parser("recurring", help="Manage monthly budget lines")
    recurring_sub = recurring_parser.add_subparsers(dest="command", required=True)

    recurring_sub.add_parser("list", help="List budget lines")

    recurring_add = recurring_sub.add_parser("add", help="Add a budget line")
    recurring_add.add_argument("name")
    recurring_add.add_argument("budget")
    _add_recurring_fields(recurring_add)

    recurring_edit = recurring_sub.add_parser("edit", help="Edit a budget line")
    recurring_edit.add_argument("id")
    recurring_edit.add_argument("--name")
    recurring_edit.add_argument("--budget")
    _add_recurring_fields(recurring_edit)

    recurring_delete = recurring_sub.add_parser("delete", help="Delete a budget line")
    recurring_delete.add_argument("id")

    category_parser = subparsers.add_parser("category", help="Manage categories")
    category_sub = category_parser.add_subparsers(dest="command", required=True)

    category_sub.add_parser("list", help="List categories")

    category_add = category_sub.add_parser("add", help="Add a category")
    category_add.add_argument("large_class")
    category_add.add_argument("medium_class")
    category_add.add_argument("--icon")
    category_add.add_argument("--color")

    category_edit = category_sub.add_parser("edit", help="Edit a category")
    category_edit.add_argument("id")
    category_edit.add_argument("--large-class")
    category_edit.add_argument("--medium-class")
    category_edit.add_argument("--icon")
    category_edit.add_argument("--color")

    category_delete = category_sub.add_parser("delete", help="Delete a category")
    category_delete.add_argument("id")

    tag_parser = subparsers.add_parser("tag", help="Manage tags")
    tag_sub = tag_parser.add_subparsers(dest="command", required=True)

    tag_sub.add_parser("list", help="List tags")

    tag_add = tag_sub.add_parser("add", help="Add a tag")
    tag_add.add_argument("name")
    tag_add.add_argument("--color")

    tag_edit = tag_sub.add_parser("edit", help="Edit a tag")
    tag_edit.add_argument("id")
    tag_edit.add_argument("--name")
    tag_edit.add_argument("--color")

    tag_delete = tag_sub.add_parser("delete", help="Delete a tag")
    tag_delete.add_argument("id")

    summary_parser = subparsers.add_parser("summary", help="Show a monthly breakdown")
    summary_parser.add_argument("--month", type=_parse_month)

    subparsers.add_parser("budget", help="Show recurring budget progress")

    reset_parser = subparsers.add_parser("reset", help="Clear expenses and restore defaults")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm the reset")

    return parser


HANDLERS = {
    "expense": handle_expense,
    "recurring": handle_recurring,
    "category": handle_category,
    "tag": handle_tag,
    "summary": handle_summary,
    "budget": handle_budget,
    "reset": handle_reset,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    store = ExpenseStore(JSONStorage(args.data_dir))

    try:
        HANDLERS[args.entity](args, store)
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    if store.has_unsaved_changes:
        print(
            "Warning: changes may not be saved ({})".format(", ".join(store.unsaved_resources)),
            file=sys.stderr,
        )
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
