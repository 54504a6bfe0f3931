from __future__ import annotations

import logging
import os
import time
from typing import Optional

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DEFAULT_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"


def utc_formatter(fmt: str = _DEFAULT_FORMAT, datefmt: str = _DEFAULT_DATEFMT) -> logging.Formatter:
    # The trailing Z in the date format only holds if asctime is rendered in UTC.
    formatter = logging.Formatter(fmt, datefmt)
    formatter.converter = time.gmtime
    return formatter


def setup_logging(level: Optional[str] = None, fmt: str = _DEFAULT_FORMAT, datefmt: str = _DEFAULT_DATEFMT) -> None:
    """Configure the root logger with UTC timestamps.

    Respects the `LOG_LEVEL` env var when level is not supplied.
    """

    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    handler = logging.StreamHandler()
    handler.setFormatter(utc_formatter(fmt, datefmt))
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO), handlers=[handler])


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)


def short_id(identifier: str, length: int = 20) -> str:
    if len(identifier) <= length:
        return identifier
    return identifier[:length] + "..."
