from datetime import date
from decimal import ROUND_HALF_UP, Decimal

_CENTS = Decimal("0.01")


def format_amount(value: Decimal) -> str:
    # Aggregates keep full precision; rounding only happens here.
    return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


def format_month_label(month: str) -> str:
    try:
        year, month_number = month.split("-")
        return date(int(year), int(month_number), 1).strftime("%B %Y")
    except ValueError:
        return month


def format_short_date(value: str) -> str:
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return value
    return f"{parsed:%b} {parsed.day}"
