"""Logging setup."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import Config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: Config) -> None:
    """Configure the package logger.

    Debug output goes to the configured log file only, so the dashboard and
    JSON output on stdout are never interleaved with log lines.
    """
    logger = logging.getLogger("stack_status")
    logger.handlers.clear()
    logger.propagate = False

    if config.is_debug():
        log_file = config.get_log_file()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file)
        logger.setLevel(logging.DEBUG)
    else:
        handler = logging.StreamHandler(sys.stderr)
        logger.setLevel(logging.WARNING)

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
