from pydantic import BaseModel


class TransactionInput(BaseModel):
    # Kept loose on purpose: validation and its error messages belong to
    # domain.transactions.normalize.
    id: int | str | None = None
    type: str = "income"
    amount: float | str | None = None
    description: str = ""
    date: str = ""
    category: str = ""


class ImportResponse(BaseModel):
    status: str
    added: int
    replaced: int
    total: int
