import os
import re

from finance_ledger.logger import get_logger

from .base import BlobStore

logger = get_logger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class FileBlobStore(BlobStore):
    """One JSON file per key under ``data_dir``."""

    def __init__(self, data_dir: str = ".") -> None:
        self.data_dir = data_dir

    def path_for(self, key: str) -> str:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid store key: {key!r}")
        return os.path.join(self.data_dir, f"{key}.json")

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not os.path.exists(path):
            return None
        with open(path, encoding="utf-8") as f:
            return f.read()

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        os.makedirs(self.data_dir, exist_ok=True)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(value)
        os.replace(tmp_path, path)
        logger.debug("[STORE] Wrote %d bytes to %s", len(value), path)
