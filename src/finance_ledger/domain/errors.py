class LedgerError(Exception):
    """Base class for errors raised by the ledger engine."""


class TransactionValidationError(LedgerError):
    """User-entered data was rejected before reaching the ledger."""


class InvalidAmount(TransactionValidationError):
    pass


class MissingDescription(TransactionValidationError):
    pass


class MissingDate(TransactionValidationError):
    pass


class CsvFormatError(LedgerError):
    """The CSV text does not follow the column contract."""


class ImportTooLarge(LedgerError):
    pass


class TransactionNotFound(LedgerError, KeyError):
    def __init__(self, transaction_id: int | str) -> None:
        super().__init__(transaction_id)
        self.transaction_id = transaction_id

    def __str__(self) -> str:
        return f"Transaction {self.transaction_id!r} not found"
