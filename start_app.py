#!/usr/bin/env python
"""Run the sync engine API under uvicorn (PORT / HOST from the environment)."""
import os

import uvicorn

from stocksync.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    port = int(os.environ.get("PORT", 8000))
    host = os.environ.get("HOST", "0.0.0.0")

    print(f"Starting stocksync ({settings.ENVIRONMENT}) on {host}:{port}")

    uvicorn.run(
        "stocksync.main:app",
        host=host,
        port=port,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
