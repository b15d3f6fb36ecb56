from datetime import date
from decimal import Decimal

import pytest

from finance_ledger.domain.aggregation import (
    aggregate_by_month,
    category_breakdown,
    chart_month_options,
    filter_by_month,
    month_summary,
    monthly_series,
    record_month_options,
    select_default_month,
    sorted_month_keys,
)
from finance_ledger.models import Transaction


def tx(id, type, amount, date, category="General"):
    return Transaction(id=id, type=type, amount=Decimal(amount), description=f"tx {id}",
                       date=date, category=category)


@pytest.fixture
def transactions() -> list[Transaction]:
    return [
        tx(1, "income", "2500.00", "2024-01-31", "Salary"),
        tx(2, "expense", "12.10", "2024-01-03", "Food"),
        tx(3, "expense", "7.20", "2024-01-20", " Food "),
        tx(4, "expense", "900", "2024-01-01", "Rent"),
        tx(5, "expense", "0.33", "2024-03-15"),
        tx(6, "income", "50", "2024-03-02", "Gift"),
        tx(7, "expense", "99", "", "Food"),
    ]


def test_category_totals_partition_expenses(transactions):
    aggregates = aggregate_by_month(transactions)
    for aggregate in aggregates.values():
        assert sum(aggregate.category_totals.values(), Decimal(0)) == aggregate.expense_total


def test_aggregate_by_month(transactions):
    aggregates = aggregate_by_month(transactions)
    assert set(aggregates) == {"2024-01", "2024-03"}

    january = aggregates["2024-01"]
    assert january.income_total == Decimal("2500.00")
    assert january.expense_total == Decimal("919.30")
    assert january.category_totals == {"Food": Decimal("19.30"), "Rent": Decimal("900")}

    march = aggregates["2024-03"]
    assert march.category_totals == {"General": Decimal("0.33")}


def test_income_never_reaches_category_totals(transactions):
    for aggregate in aggregate_by_month(transactions).values():
        assert "Salary" not in aggregate.category_totals
        assert "Gift" not in aggregate.category_totals


def test_empty_date_is_excluded(transactions):
    assert "" not in aggregate_by_month(transactions)
    assert sorted_month_keys(transactions) == ["2024-01", "2024-03"]
    total_expense = sum(a.expense_total for a in aggregate_by_month(transactions).values())
    assert total_expense == Decimal("919.63")


def test_no_rounding_in_aggregates():
    small = [tx(i, "expense", "0.005", "2024-05-01") for i in range(3)]
    assert aggregate_by_month(small)["2024-05"].expense_total == Decimal("0.015")


def test_select_default_month(transactions):
    assert select_default_month(transactions) == "2024-03"
    assert select_default_month([], today=date(2024, 6, 15)) == "2024-06"


def test_filter_by_month(transactions):
    assert [t.id for t in filter_by_month(transactions, "2024-03")] == [5, 6]
    assert filter_by_month(transactions, "2023-12") == []


def test_month_summary(transactions):
    summary = month_summary(filter_by_month(transactions, "2024-03"))
    assert summary.income == Decimal("50")
    assert summary.expense == Decimal("0.33")
    assert summary.balance == Decimal("49.67")


def test_record_picker_offers_current_month_without_data():
    data = [tx(1, "income", "10", "2023-01-15")]
    today = date(2024, 6, 10)

    options = record_month_options(data, today=today)
    assert options == ["2024-06", "2023-01"]

    selected = filter_by_month(data, "2024-06")
    assert selected == []
    summary = month_summary(selected)
    assert (summary.income, summary.expense, summary.balance) == (0, 0, 0)


def test_record_picker_keeps_selected_month():
    data = [tx(1, "income", "10", "2023-01-15")]
    options = record_month_options(data, selected="2022-05", today=date(2023, 1, 20))
    assert options == ["2023-01", "2022-05"]


def test_monthly_series_is_ascending(transactions):
    series = monthly_series(transactions)
    assert series["months"] == ["2024-01", "2024-03"]
    assert series["labels"] == ["January 2024", "March 2024"]
    assert series["income"] == [Decimal("2500.00"), Decimal("50")]
    assert series["expense"] == [Decimal("919.30"), Decimal("0.33")]


def test_category_breakdown(transactions):
    pie = category_breakdown(transactions, "2024-01")
    assert dict(zip(pie["labels"], pie["data"])) == {"Food": Decimal("19.30"), "Rent": Decimal("900")}

    empty = category_breakdown(transactions, "1999-01")
    assert empty["labels"] == []
    assert empty["data"] == []


def test_chart_picker_includes_selected_month():
    data = [tx(1, "income", "10", "2023-01-15"), tx(2, "expense", "5", "2023-03-01")]
    assert chart_month_options(data, selected="2023-03") == ["2023-01", "2023-03"]
    assert chart_month_options(data, selected="2024-06") == ["2023-01", "2023-03", "2024-06"]
    assert chart_month_options([], selected="2024-06") == ["2024-06"]


def test_large_amounts_sum_exactly():
    data = [
        tx(1, "expense", "999999999999999.123456789", "2024-05-01", "Rent"),
        tx(2, "expense", "0.00000000000000000001", "2024-05-02", "Food"),
        tx(3, "income", "999999999999999.99", "2024-05-03"),
    ]
    aggregate = aggregate_by_month(data)["2024-05"]
    assert aggregate.expense_total == Decimal("999999999999999.12345678900000000001")
    assert sum(aggregate.category_totals.values(), Decimal(0)) == aggregate.expense_total

    summary = month_summary(data)
    assert summary.balance == Decimal("0.86654321099999999999")
