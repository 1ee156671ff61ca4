"""
Logging for the workbook core.

Modules log through ``get_logger(__name__)``. Nothing is configured on
import: the host process, or ``build_controller``, calls
``ensure_logging_setup`` once and the level and optional log file come from
``Settings``.
"""

import logging
import sys
from typing import Optional, Union

from .config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def _level(value: Union[int, str, None]) -> int:
    if isinstance(value, int):
        return value
    # unknown level names fall back to WARNING
    return getattr(logging, (value or settings.LOG_LEVEL).upper(), logging.WARNING)


def setup_logging(level: Union[int, str, None] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Points the root logger at stderr (and `log_file`, which records DEBUG and
    up). Unset arguments fall back to MEAPP_LOG_LEVEL / MEAPP_LOG_FILE.
    """
    level = _level(level)
    log_file = log_file or settings.LOG_FILE
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)
    root.setLevel(level)

    if log_file:
        to_file = logging.FileHandler(log_file, encoding="utf-8")
        to_file.setLevel(logging.DEBUG)
        to_file.setFormatter(formatter)
        root.addHandler(to_file)
        root.setLevel(logging.DEBUG)

    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def ensure_logging_setup() -> None:
    """setup_logging() from settings, once per process."""
    global _configured
    if not _configured:
        setup_logging()
        _configured = True
