import asyncio
from typing import Protocol

from finance_ledger.core import settings
from finance_ledger.domain.errors import CsvFormatError, ImportTooLarge
from finance_ledger.ledger import ImportResult, Ledger
from finance_ledger.logger import get_logger

logger = get_logger(__name__)


class AsyncReadable(Protocol):
    filename: str | None

    async def read(self, size: int = -1) -> bytes: ...


class CsvImporter:
    """Reads an uploaded CSV file and merges it into the ledger.

    Reading the upload is the only asynchronous step; parsing and merging run
    synchronously under the ledger's lock.
    """

    def __init__(self, ledger: Ledger, max_bytes: int | None = None) -> None:
        self.ledger = ledger
        self.max_bytes = max_bytes or settings.DEFAULT_MAX_IMPORT_BYTES

    async def read_text(self, upload: AsyncReadable) -> str:
        data = await upload.read(self.max_bytes + 1)
        if len(data) > self.max_bytes:
            raise ImportTooLarge(f"CSV upload exceeds {self.max_bytes} bytes")
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CsvFormatError(f"CSV must be UTF-8 encoded ({e.reason} at byte {e.start})") from e

    async def import_upload(self, upload: AsyncReadable) -> ImportResult:
        text = await self.read_text(upload)
        logger.info("[IMPORT] Importing %s (%d chars).", upload.filename or "<upload>", len(text))
        return await asyncio.to_thread(self.ledger.import_csv, text)
