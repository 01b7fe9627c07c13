"""
Logging setup for applications embedding the contacts packages.

Library modules only call logging.getLogger(__name__); handlers are
installed here, once, by the host or by tests.
"""

import logging
import sys
from typing import Optional, TextIO

from .config import get_settings

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger with a single stream handler.

    The level defaults to CONTACTS_LOG_LEVEL. Calling this again replaces the
    existing handlers instead of stacking new ones.
    """
    level_name = (level or get_settings().log_level).upper()
    numeric_level = _LEVELS.get(level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
    root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
