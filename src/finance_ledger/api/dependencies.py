from fastapi import HTTPException, Request

from finance_ledger.ledger import Ledger
from finance_ledger.services.importer import CsvImporter
from finance_ledger.storage.base import BlobStore


def get_ledger(request: Request) -> Ledger:
    ledger = getattr(request.app.state, "ledger", None)
    if ledger is None:
        raise HTTPException(status_code=500, detail="Ledger not initialized")
    return ledger


def get_store(request: Request) -> BlobStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Storage not configured")
    return store


def get_importer(request: Request) -> CsvImporter:
    importer = getattr(request.app.state, "importer", None)
    if importer is None:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return importer
