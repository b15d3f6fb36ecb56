from __future__ import annotations

import re
import threading
import time
from collections.abc import Callable, Collection, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from finance_ledger.domain.errors import InvalidAmount, MissingDate, MissingDescription
from finance_ledger.domain.timefmt import format_amount, format_short_date
from finance_ledger.logger import get_logger
from finance_ledger.models import DEFAULT_CATEGORY, Transaction, TransactionType

logger = get_logger(__name__)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_PREFIX = re.compile(r"^(\d{4})-(\d{2})")
_LINE_BREAKS = re.compile(r"[\r\n]+")

# Accepted amounts stay below 10**15 with at most 20 decimal places;
# aggregation sums are exact within these bounds.
MAX_AMOUNT_DIGITS = 15
MAX_AMOUNT_PLACES = 20


class IdFactory:
    """Issues integer ids from the millisecond clock.

    Ids are strictly increasing within a process, so records created in the
    same instant (a CSV import full of blank ids) still get distinct values.
    Anything in ``taken`` is skipped.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self, taken: Collection[int | str] = ()) -> int:
        with self._lock:
            candidate = max(int(self._clock() * 1000), self._last + 1)
            while candidate in taken:
                candidate += 1
            self._last = candidate
            return candidate


def parse_amount(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    if not amount.is_finite() or not _within_limits(amount):
        return None
    return amount


def _within_limits(amount: Decimal) -> bool:
    if amount.is_zero():
        return True
    if amount.adjusted() >= MAX_AMOUNT_DIGITS:
        return False
    _, digits, exponent = amount.as_tuple()
    trailing_zeros = len(digits) - len("".join(map(str, digits)).rstrip("0"))
    return exponent + trailing_zeros >= -MAX_AMOUNT_PLACES


def parse_id(value: Any) -> int | None:
    """Read an explicit id. Anything that is not a non-zero integer gives None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value or None
    try:
        return int(str(value).strip()) or None
    except ValueError:
        return None


def parse_iso_date(value: Any) -> str | None:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not _ISO_DATE.match(text):
        return None
    try:
        date.fromisoformat(text)
    except ValueError:
        return None
    return text


def parse_type(value: Any) -> TransactionType:
    # Anything other than "expense" is treated as income. This mirrors the
    # closed option set of the entry form, but it also hides typos in imported
    # data ("Expense", "expenses" all become income).
    if value == "expense":
        return "expense"
    if value != "income":
        logger.debug("[LEDGER] Unrecognized transaction type %r, using 'income'.", value)
    return "income"


def clean_text(value: Any) -> str:
    if value is None:
        return ""
    return _LINE_BREAKS.sub(" ", str(value)).strip()


def clean_category(value: Any) -> str:
    return clean_text(value) or DEFAULT_CATEGORY


def month_key(date_value: str | None) -> str:
    if not date_value:
        return ""
    match = _MONTH_PREFIX.match(date_value)
    if not match or not 1 <= int(match.group(2)) <= 12:
        return ""
    return date_value[:7]


def normalize(
    raw: Mapping[str, Any],
    *,
    new_id: Callable[[], int | str] | None = None,
) -> Transaction:
    """Validate raw form fields and build a Transaction.

    ``raw`` holds ``type``, ``amount``, ``description``, ``date``,
    ``category`` and optionally ``id``. When ``id`` is missing or is not a
    non-zero integer, ``new_id`` supplies one.
    """
    amount = parse_amount(raw.get("amount"))
    if amount is None or amount < 0:
        raise InvalidAmount(f"Amount must be a number >= 0 and below 10^15, got {raw.get('amount')!r}")

    description = clean_text(raw.get("description"))
    if not description:
        raise MissingDescription("Description is required")

    date_value = parse_iso_date(raw.get("date"))
    if date_value is None:
        raise MissingDate(f"Date must be YYYY-MM-DD, got {raw.get('date')!r}")

    transaction_id = parse_id(raw.get("id"))
    if transaction_id is None:
        if raw.get("id") not in (None, ""):
            logger.debug("[LEDGER] Ignoring non-integer id %r.", raw.get("id"))
        if new_id is None:
            raise ValueError("Transaction id is required")
        transaction_id = new_id()

    return Transaction(
        id=transaction_id,
        type=parse_type(raw.get("type")),
        amount=amount.copy_abs(),
        description=description,
        date=date_value,
        category=clean_category(raw.get("category")),
    )


def sort_newest_first(transactions: Collection[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda t: t.date, reverse=True)


def build_transaction_payload(transaction: Transaction) -> dict[str, Any]:
    sign = "-" if transaction.type == "expense" else "+"
    return {
        "id": transaction.id,
        "type": transaction.type,
        "amount": transaction.amount,
        "amount_formatted": f"{sign}{format_amount(transaction.amount)}",
        "description": transaction.description,
        "date": transaction.date,
        "date_formatted": format_short_date(transaction.date),
        "category": transaction.category or DEFAULT_CATEGORY,
    }
