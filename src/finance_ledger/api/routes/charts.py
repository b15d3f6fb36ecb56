from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException

from finance_ledger.api.dependencies import get_ledger
from finance_ledger.ledger import Ledger
from finance_ledger.services.views import build_chart_view

router = APIRouter()


@router.get("/api/charts")
async def get_charts(
    ledger: Annotated[Ledger, Depends(get_ledger)],
    month: str | None = None,
) -> dict[str, Any]:
    try:
        return build_chart_view(ledger.transactions(), month)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid month '{month}', expected YYYY-MM") from e
