from datetime import date, datetime
from typing import Any

from finance_ledger.domain.aggregation import (
    category_breakdown,
    chart_month_options,
    filter_by_month,
    month_summary,
    monthly_series,
    record_month_options,
    select_default_month,
)
from finance_ledger.domain.timefmt import format_amount, format_month_label
from finance_ledger.domain.transactions import build_transaction_payload, sort_newest_first
from finance_ledger.logger import get_logger
from finance_ledger.models import Transaction

logger = get_logger(__name__)


def resolve_month(month: str | None, transactions: list[Transaction], today: date | None = None) -> str:
    if not month:
        return select_default_month(transactions, today)
    # Raises ValueError for anything that is not YYYY-MM.
    return datetime.strptime(month, "%Y-%m").strftime("%Y-%m")


def _month_option(month: str) -> dict[str, str]:
    return {"value": month, "label": format_month_label(month)}


def build_record_view(
    transactions: list[Transaction],
    month: str | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    selected = resolve_month(month, transactions, today)
    rows = sort_newest_first(filter_by_month(transactions, selected))
    summary = month_summary(rows)
    logger.debug("[RECORDS] %s: %d rows", selected, len(rows))
    return {
        "month": selected,
        "month_label": format_month_label(selected),
        "months": [
            _month_option(m)
            for m in record_month_options(transactions, selected=selected, today=today)
        ],
        "summary": {
            "income": format_amount(summary.income),
            "expense": format_amount(summary.expense),
            "balance": format_amount(summary.balance),
        },
        "transactions": [build_transaction_payload(t) for t in rows],
    }


def build_chart_view(
    transactions: list[Transaction],
    month: str | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    selected = resolve_month(month, transactions, today)
    return {
        "month": selected,
        "months": [_month_option(m) for m in chart_month_options(transactions, selected=selected)],
        "bar": monthly_series(transactions),
        "pie": category_breakdown(transactions, selected),
    }
