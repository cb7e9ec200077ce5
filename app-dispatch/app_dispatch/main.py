from __future__ import annotations

import os

from .api import create_app
from .logging_config import setup_logging

setup_logging(os.getenv("LOG_LEVEL", "INFO"))
app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    # Or: uvicorn app_dispatch.main:app --reload
    uvicorn.run("app_dispatch.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=False)
