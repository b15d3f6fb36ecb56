from collections.abc import Iterable

from finance_ledger.models import Transaction


def merge_import(
    existing: Iterable[Transaction], imported: Iterable[Transaction]
) -> list[Transaction]:
    """Overlay imported records onto the ledger by id.

    A colliding id is replaced wholesale by the imported record; there is no
    field-level merge. Order of the result carries no meaning.
    """
    merged: dict[int | str, Transaction] = {t.id: t for t in existing}
    for t in imported:
        merged[t.id] = t
    return list(merged.values())
