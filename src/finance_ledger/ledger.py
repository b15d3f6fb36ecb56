import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

from finance_ledger.domain.aggregation import filter_by_month
from finance_ledger.domain.csv_codec import parse_csv, to_csv
from finance_ledger.domain.errors import TransactionNotFound
from finance_ledger.domain.merge import merge_import
from finance_ledger.domain.transactions import IdFactory, normalize, sort_newest_first
from finance_ledger.logger import get_logger
from finance_ledger.models import Transaction

logger = get_logger(__name__)

CommitCallback = Callable[[list[Transaction]], None]


@dataclass(frozen=True)
class ImportResult:
    added: int
    replaced: int
    total: int


class Ledger:
    """The user's transactions, keyed by id.

    Every mutation builds the new collection, hands it to ``on_commit`` and
    only then swaps it in, so a failing persistence callback leaves the
    ledger as it was. Mutations are serialized.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        *,
        on_commit: CommitCallback | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._items: dict[int | str, Transaction] = {t.id: t for t in transactions}
        self._on_commit = on_commit
        self._id_factory = id_factory or IdFactory()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._items

    def transactions(self) -> list[Transaction]:
        return list(self._items.values())

    def get(self, transaction_id: int | str) -> Transaction:
        try:
            return self._items[transaction_id]
        except KeyError:
            raise TransactionNotFound(transaction_id) from None

    def _new_id(self) -> int:
        return self._id_factory(self._items.keys())

    def _commit(self, items: dict[int | str, Transaction]) -> None:
        if self._on_commit is not None:
            self._on_commit(list(items.values()))
        self._items = items

    def add(self, raw: Mapping[str, Any]) -> Transaction:
        with self._lock:
            transaction = normalize(raw, new_id=self._new_id)
            if transaction.id in self._items:
                # Only merge is allowed to overwrite by id.
                transaction = transaction.model_copy(update={"id": self._new_id()})
            items = dict(self._items)
            items[transaction.id] = transaction
            self._commit(items)
        logger.info("[LEDGER] Added %s %s (id=%s).", transaction.type, transaction.amount, transaction.id)
        return transaction

    def update(self, transaction_id: int | str, raw: Mapping[str, Any]) -> Transaction:
        with self._lock:
            if transaction_id not in self._items:
                raise TransactionNotFound(transaction_id)
            fields = {key: value for key, value in raw.items() if key != "id"}
            transaction = normalize(fields, new_id=lambda: transaction_id)
            items = dict(self._items)
            items[transaction_id] = transaction
            self._commit(items)
        logger.info("[LEDGER] Updated transaction %s.", transaction_id)
        return transaction

    def delete(self, transaction_id: int | str) -> Transaction:
        with self._lock:
            items = dict(self._items)
            try:
                removed = items.pop(transaction_id)
            except KeyError:
                raise TransactionNotFound(transaction_id) from None
            self._commit(items)
        logger.info("[LEDGER] Deleted transaction %s.", transaction_id)
        return removed

    def import_csv(self, text: str, *, today: date | None = None) -> ImportResult:
        with self._lock:
            existing_ids = set(self._items.keys())
            imported = parse_csv(
                text,
                id_factory=lambda taken: self._id_factory(existing_ids | set(taken)),
                today=today,
            )
            merged = merge_import(self._items.values(), imported)
            self._commit({t.id: t for t in merged})

            imported_ids = {t.id for t in imported}
            replaced = len(imported_ids & existing_ids)
            result = ImportResult(
                added=len(imported_ids) - replaced,
                replaced=replaced,
                total=len(self._items),
            )
        logger.info(
            "[IMPORT] Merged %d rows: %d added, %d replaced, %d total.",
            len(imported),
            result.added,
            result.replaced,
            result.total,
        )
        return result

    def export_csv(self, month: str | None = None) -> str:
        rows = self.transactions()
        if month:
            rows = filter_by_month(rows, month)
        return to_csv(sort_newest_first(rows))
