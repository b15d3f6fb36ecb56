from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI

from finance_ledger.api.routes import charts, config, exchange, profile, transactions
from finance_ledger.core import settings
from finance_ledger.ledger import Ledger
from finance_ledger.logger import get_logger, setup_logging
from finance_ledger.services.importer import CsvImporter
from finance_ledger.storage.blobs import load_transactions, save_transactions
from finance_ledger.storage.file_store import FileBlobStore

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        store = FileBlobStore(settings.DATA_DIR)
        ledger = Ledger(
            load_transactions(store),
            on_commit=partial(save_transactions, store),
        )
        importer = CsvImporter(ledger, max_bytes=settings.get_max_import_bytes())

        app.state.store = store
        app.state.ledger = ledger
        app.state.importer = importer

        logger.info("Services initialized with %d transactions.", len(ledger))
        yield
        logger.info("Service shutting down.")

    app = FastAPI(title="Finance Ledger", lifespan=lifespan)

    app.include_router(transactions.router)
    app.include_router(charts.router)
    app.include_router(exchange.router)
    app.include_router(profile.router)
    app.include_router(config.router)

    return app


app = create_app()
