"""
Logging configuration.

One pipe-separated line per event on stdout, so a purchase run can be
followed with plain grep:

  2024-01-01 01:31:00 | INFO     | app.worker.worker              | Purchased domain=shop.au (order_id=4711)
"""

import logging
import sys
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Client libraries that log every request or scheduler tick at INFO
QUIET_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "motor",
    "pymongo",
    "apscheduler",
)


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger once at startup.

    Args:
        level: Level name overriding ``settings.log_level``.
    """
    name = (level or settings.log_level).upper()
    log_level = getattr(logging, name, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
