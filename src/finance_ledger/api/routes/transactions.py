from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException

from finance_ledger.api.dependencies import get_ledger
from finance_ledger.api.schemas import TransactionInput
from finance_ledger.domain.errors import TransactionNotFound, TransactionValidationError
from finance_ledger.domain.transactions import sort_newest_first
from finance_ledger.ledger import Ledger
from finance_ledger.models import Transaction
from finance_ledger.services.views import build_record_view

router = APIRouter()


def parse_transaction_id(raw: str) -> int | str:
    # Ids created here are integers; anything else is an opaque token.
    try:
        return int(raw)
    except ValueError:
        return raw


@router.get("/api/transactions", response_model=list[Transaction])
async def list_transactions(
    ledger: Annotated[Ledger, Depends(get_ledger)],
) -> list[Transaction]:
    return sort_newest_first(ledger.transactions())


@router.post("/api/transactions", response_model=Transaction, status_code=201)
async def add_transaction(
    req: TransactionInput,
    ledger: Annotated[Ledger, Depends(get_ledger)],
) -> Transaction:
    try:
        return ledger.add(req.model_dump())
    except TransactionValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.put("/api/transactions/{transaction_id}", response_model=Transaction)
async def update_transaction(
    transaction_id: str,
    req: TransactionInput,
    ledger: Annotated[Ledger, Depends(get_ledger)],
) -> Transaction:
    try:
        return ledger.update(parse_transaction_id(transaction_id), req.model_dump(exclude={"id"}))
    except TransactionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except TransactionValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.delete("/api/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    ledger: Annotated[Ledger, Depends(get_ledger)],
) -> dict[str, Any]:
    try:
        removed = ledger.delete(parse_transaction_id(transaction_id))
    except TransactionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {"status": "deleted", "id": removed.id}


@router.get("/api/records")
async def get_records(
    ledger: Annotated[Ledger, Depends(get_ledger)],
    month: str | None = None,
) -> dict[str, Any]:
    try:
        return build_record_view(ledger.transactions(), month)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid month '{month}', expected YYYY-MM") from e
