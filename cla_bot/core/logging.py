"""
Logging for the CLA bot.

Everything goes to stdout through the standard library. Modules take a
logger with ``get_logger(__name__)``; the lifespan calls ``setup_logging``
once at startup. Calling it again replaces the handlers instead of stacking
them.
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# capped at WARNING whatever the configured level
QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "uvicorn.access",
    "sqlalchemy.engine",
    "alembic",
)


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger.

    Args:
        level: LOG_LEVEL setting; unknown names fall back to INFO.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)
