"""Monthly views over the ledger.

Everything here is computed from the transaction list on demand and keeps
full Decimal precision; formatting to two places is left to presentation.
Records whose date has no valid ``YYYY-MM`` prefix belong to no month and are
left out of every aggregate.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Context, Decimal, localcontext
from typing import Any

from finance_ledger.domain.timefmt import format_month_label
from finance_ledger.domain.transactions import clean_category, month_key
from finance_ledger.models import MonthlyAggregate, MonthSummary, Transaction

# Wide enough for exact sums of amounts within the parse_amount limits.
_EXACT = Context(prec=64)


def current_month(today: date | None = None) -> str:
    return (today or date.today()).strftime("%Y-%m")


def aggregate_by_month(transactions: Iterable[Transaction]) -> dict[str, MonthlyAggregate]:
    aggregates: dict[str, MonthlyAggregate] = {}
    with localcontext(_EXACT):
        for t in transactions:
            key = month_key(t.date)
            if not key:
                continue
            aggregate = aggregates.setdefault(key, MonthlyAggregate())
            if t.type == "income":
                aggregate.income_total += t.amount
            else:
                aggregate.expense_total += t.amount
                category = clean_category(t.category)
                aggregate.category_totals[category] = (
                    aggregate.category_totals.get(category, Decimal(0)) + t.amount
                )
    return aggregates


def sorted_month_keys(transactions: Iterable[Transaction]) -> list[str]:
    return sorted({key for key in (month_key(t.date) for t in transactions) if key})


def select_default_month(transactions: Iterable[Transaction], today: date | None = None) -> str:
    months = sorted_month_keys(transactions)
    return months[-1] if months else current_month(today)


def filter_by_month(transactions: Iterable[Transaction], month: str) -> list[Transaction]:
    return [t for t in transactions if month_key(t.date) == month]


def month_summary(transactions: Iterable[Transaction]) -> MonthSummary:
    income = Decimal(0)
    expense = Decimal(0)
    with localcontext(_EXACT):
        for t in transactions:
            if t.type == "income":
                income += t.amount
            else:
                expense += t.amount
        balance = income - expense
    return MonthSummary(income=income, expense=expense, balance=balance)


def record_month_options(
    transactions: Iterable[Transaction],
    *,
    selected: str | None = None,
    today: date | None = None,
) -> list[str]:
    """Month picker options for the record list, most recent first.

    The current calendar month and the selected month are always offered,
    even with no matching records, so the picker never points at a missing
    option.
    """
    months = set(sorted_month_keys(transactions))
    months.add(current_month(today))
    if selected:
        months.add(selected)
    return sorted(months, reverse=True)


def chart_month_options(transactions: Iterable[Transaction], *, selected: str | None = None) -> list[str]:
    """Month picker options for the charts, oldest first, including ``selected``."""
    months = set(sorted_month_keys(transactions))
    if selected:
        months.add(selected)
    return sorted(months)


def monthly_series(transactions: Iterable[Transaction]) -> dict[str, Any]:
    transactions = list(transactions)
    months = sorted_month_keys(transactions)
    aggregates = aggregate_by_month(transactions)
    return {
        "months": months,
        "labels": [format_month_label(m) for m in months],
        "income": [aggregates[m].income_total for m in months],
        "expense": [aggregates[m].expense_total for m in months],
    }


def category_breakdown(transactions: Iterable[Transaction], month: str) -> dict[str, Any]:
    aggregate = aggregate_by_month(filter_by_month(transactions, month)).get(month)
    totals = aggregate.category_totals if aggregate else {}
    return {
        "month": month,
        "labels": list(totals.keys()),
        "data": list(totals.values()),
    }
