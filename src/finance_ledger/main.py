import os

import uvicorn

from finance_ledger.app import app
from finance_ledger.logger import get_logging_config

__all__ = ["app", "run"]


def run() -> None:
    uvicorn.run(
        "finance_ledger.app:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_config=get_logging_config(),
    )


if __name__ == "__main__":
    run()
