from abc import ABC, abstractmethod


class BlobStore(ABC):
    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored string for ``key``, or None if nothing is stored."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Replace the stored string for ``key``."""
        pass
