from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, UploadFile
from fastapi.responses import Response

from finance_ledger.api.dependencies import get_importer, get_ledger
from finance_ledger.api.schemas import ImportResponse
from finance_ledger.domain.csv_codec import export_filename
from finance_ledger.domain.errors import CsvFormatError, ImportTooLarge
from finance_ledger.ledger import Ledger
from finance_ledger.logger import get_logger
from finance_ledger.services.importer import CsvImporter
from finance_ledger.services.views import resolve_month

logger = get_logger(__name__)

router = APIRouter()


@router.get("/api/export")
async def export_csv(
    ledger: Annotated[Ledger, Depends(get_ledger)],
    month: str | None = None,
) -> Response:
    try:
        selected = resolve_month(month, ledger.transactions())
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid month '{month}', expected YYYY-MM") from e

    filename = export_filename(selected)
    return Response(
        content=ledger.export_csv(selected),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/api/import", response_model=ImportResponse)
async def import_csv(
    file: UploadFile,
    importer: Annotated[CsvImporter, Depends(get_importer)],
) -> ImportResponse:
    try:
        result = await importer.import_upload(file)
    except ImportTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e)) from e
    except CsvFormatError as e:
        logger.warning("[IMPORT] Import failed: %s", e)
        raise HTTPException(status_code=400, detail=f"Import failed: {e}") from e
    return ImportResponse(
        status="CSV import complete.",
        added=result.added,
        replaced=result.replaced,
        total=result.total,
    )
