"""
Logging setup for the API server and the command line tool.

``LOG_LEVEL`` selects the level (DEBUG|INFO|WARNING|ERROR|CRITICAL). DEBUG
switches to a verbose format that includes the logger name and line number.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from .config import get_log_level

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger, replacing any existing handlers."""
    numeric_level = _LEVELS.get((level or get_log_level()).upper(), logging.INFO)

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    if numeric_level <= logging.DEBUG:
        fmt = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
    else:
        fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt="%H:%M:%S"))
    root.setLevel(numeric_level)
    root.addHandler(handler)

    # uvicorn access logs are noisy below DEBUG
    logging.getLogger("uvicorn.access").setLevel(
        logging.INFO if numeric_level <= logging.DEBUG else logging.WARNING
    )
