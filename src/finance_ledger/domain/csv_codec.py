"""CSV import/export of the ledger.

The column order below is the interchange contract: exports are meant to be
re-imported, so the header is written and checked verbatim.

Parsing is deliberately forgiving at row level. A bad amount, id or date in
one row degrades to a default instead of failing the whole file; only the
header and the row structure (quoting, column count) are enforced.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Collection, Iterable
from datetime import date
from decimal import Decimal

from finance_ledger.domain.errors import CsvFormatError
from finance_ledger.domain.transactions import (
    IdFactory,
    clean_category,
    parse_amount,
    parse_id,
    parse_iso_date,
    parse_type,
)
from finance_ledger.logger import get_logger
from finance_ledger.models import DEFAULT_CATEGORY, Transaction

logger = get_logger(__name__)

CSV_COLUMNS = ("id", "type", "amount", "description", "date", "category")
CSV_HEADER = ",".join(CSV_COLUMNS)

_LINE_SPLIT = re.compile(r"\r?\n")
_BOM = "\ufeff"


def quote(value: str) -> str:
    escaped = value.replace('"', '""')
    return f'"{escaped}"'


def _format_amount(amount: Decimal) -> str:
    # "f" keeps plain notation for values like Decimal("1E+2").
    return format(amount, "f")


def to_csv(transactions: Iterable[Transaction]) -> str:
    lines = [CSV_HEADER]
    for t in transactions:
        lines.append(",".join((
            str(t.id),
            t.type,
            _format_amount(t.amount),
            quote(t.description or ""),
            t.date,
            quote(t.category or DEFAULT_CATEGORY),
        )))
    return "\n".join(lines)


def export_filename(month: str) -> str:
    return f"transactions_{month}.csv"


def split_line(line: str, line_number: int = 0) -> list[str]:
    """Split one CSV line on commas that sit outside quoted spans.

    Inside a quoted span a comma is literal and ``""`` is an escaped quote.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    index = 0
    length = len(line)
    while index < length:
        char = line[index]
        if in_quotes:
            if char == '"':
                if index + 1 < length and line[index + 1] == '"':
                    current.append('"')
                    index += 1
                else:
                    in_quotes = False
            else:
                current.append(char)
        elif char == '"':
            in_quotes = True
        elif char == ",":
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1

    if in_quotes:
        raise CsvFormatError(f"Unbalanced quotes on line {line_number}")
    fields.append("".join(current))
    return fields


def _check_header(line: str) -> None:
    cells = tuple(cell.strip() for cell in line.split(","))
    if cells != CSV_COLUMNS:
        raise CsvFormatError(f"CSV header mismatch: expected '{CSV_HEADER}', got '{line.strip()}'")


def _coerce_amount(raw: str, line_number: int) -> Decimal:
    amount = parse_amount(raw)
    if amount is None:
        if raw.strip():
            logger.warning("[CSV] Line %d: invalid or out-of-range amount %r, using 0.", line_number, raw)
        return Decimal(0)
    if amount < 0:
        logger.warning("[CSV] Line %d: negative amount %s, keeping its magnitude.", line_number, raw)
    return amount.copy_abs()


def parse_csv(
    text: str,
    *,
    id_factory: Callable[[Collection[int | str]], int] | None = None,
    today: date | None = None,
) -> list[Transaction]:
    """Parse exported CSV text into transactions.

    Raises ``CsvFormatError`` for a missing or mismatched header, unbalanced
    quotes, or rows with more than six columns. Blank lines and rows with no
    values are skipped.
    """
    if id_factory is None:
        id_factory = IdFactory()
    fallback_date = (today or date.today()).isoformat()

    lines = [
        (line_number, line)
        for line_number, line in enumerate(_LINE_SPLIT.split(text.lstrip(_BOM)), start=1)
        if line.strip()
    ]
    if not lines:
        raise CsvFormatError(f"CSV is empty; expected header '{CSV_HEADER}'")

    (_, header), data_lines = lines[0], lines[1:]
    _check_header(header)

    rows: list[tuple[int, list[str]]] = []
    for line_number, line in data_lines:
        fields = split_line(line, line_number)
        if not any(field.strip() for field in fields):
            logger.warning("[CSV] Line %d: no values, skipping.", line_number)
            continue
        if len(fields) > len(CSV_COLUMNS):
            raise CsvFormatError(
                f"Line {line_number} has {len(fields)} fields, expected {len(CSV_COLUMNS)}"
            )
        fields.extend([""] * (len(CSV_COLUMNS) - len(fields)))
        rows.append((line_number, fields))

    # Explicit ids are collected first so synthesized ones cannot collide.
    taken: set[int | str] = set()
    for _, fields in rows:
        explicit = parse_id(fields[0])
        if explicit is not None:
            taken.add(explicit)

    transactions: list[Transaction] = []
    for line_number, fields in rows:
        raw_id, raw_type, raw_amount, description, raw_date, category = fields

        transaction_id = parse_id(raw_id)
        if transaction_id is None:
            transaction_id = id_factory(taken)
            taken.add(transaction_id)

        date_value = parse_iso_date(raw_date)
        if date_value is None:
            if raw_date.strip():
                logger.warning("[CSV] Line %d: invalid date %r, using %s.", line_number, raw_date, fallback_date)
            date_value = fallback_date

        transactions.append(Transaction(
            id=transaction_id,
            type=parse_type(raw_type),
            amount=_coerce_amount(raw_amount, line_number),
            description=description,
            date=date_value,
            category=clean_category(category),
        ))

    logger.debug("[CSV] Parsed %d transactions.", len(transactions))
    return transactions
