import json

from pydantic import TypeAdapter, ValidationError

from finance_ledger.logger import get_logger
from finance_ledger.models import Profile, Transaction

from .base import BlobStore

logger = get_logger(__name__)

PROFILE_KEY = "profile"
TRANSACTIONS_KEY = "transactions"

_TRANSACTION_LIST = TypeAdapter(list[Transaction])


def load_transactions(store: BlobStore) -> list[Transaction]:
    raw = store.get(TRANSACTIONS_KEY)
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("[STORE] Stored transactions are not valid JSON (%s); starting empty.", e)
        return []
    if not isinstance(data, list):
        logger.warning("[STORE] Stored transactions are not a list; starting empty.")
        return []

    transactions: list[Transaction] = []
    seen: set[int | str] = set()
    for item in data:
        try:
            transaction = Transaction.model_validate(item)
        except ValidationError as e:
            item_id = item.get("id") if isinstance(item, dict) else None
            logger.warning("[STORE] Skipping invalid transaction %s: %s", item_id, e.errors()[0]["msg"])
            continue
        if transaction.id in seen:
            logger.warning("[STORE] Skipping duplicate transaction id %s", transaction.id)
            continue
        seen.add(transaction.id)
        transactions.append(transaction)

    logger.info("[STORE] Loaded %d transactions.", len(transactions))
    return transactions


def save_transactions(store: BlobStore, transactions: list[Transaction]) -> None:
    store.set(TRANSACTIONS_KEY, _TRANSACTION_LIST.dump_json(transactions, indent=2).decode("utf-8"))


def load_profile(store: BlobStore) -> Profile:
    raw = store.get(PROFILE_KEY)
    if not raw:
        return Profile()
    try:
        return Profile.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("[STORE] Stored profile is invalid (%d errors); using an empty profile.", e.error_count())
        return Profile()


def save_profile(store: BlobStore, profile: Profile) -> None:
    store.set(PROFILE_KEY, profile.model_dump_json(indent=2))
