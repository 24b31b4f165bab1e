"""
Logging setup for the API process.
Module loggers attach context through ``extra={...}``.
"""

import logging
import sys

from app.core.config import settings

# Driver loggers that flood INFO with per-statement output
NOISY_LOGGERS = ("sqlalchemy.engine", "asyncpg", "aiosqlite")


def setup_logging() -> None:
    """Configure root logging once at startup, at LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"environment": settings.OTEL_ENVIRONMENT, "level": settings.LOG_LEVEL},
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
