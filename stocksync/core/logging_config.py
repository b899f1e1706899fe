# stocksync/core/logging_config.py
"""
Logging set-up for the API process.

Sync cycles and webhook deliveries log one line per style or line item, so the
driver and scheduler loggers are held at WARNING to keep those lines readable.
"""

import logging
import os
from typing import Optional

# Libraries that log every query, connection or job run at INFO/DEBUG
NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "asyncpg",
    "aiosqlite",
    "aioodbc",
    "apscheduler",
    "apscheduler.executors.default",
)


def resolve_log_level(debug: bool = False) -> str:
    # LOG_LEVEL wins; DEBUG=true only lowers the default
    return os.environ.get("LOG_LEVEL", "DEBUG" if debug else "INFO").upper()


def configure_logging(debug: bool = False, log_level: Optional[str] = None):
    """Configure the root handler and quiet third-party loggers."""
    log_level = (log_level or resolve_log_level(debug)).upper()
    level = getattr(logging, log_level, logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for name in ("stocksync", "__main__"):
        logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).info(f"Logging configured at level: {log_level}")
