"""Loguru-based logging setup for the CLI and embedding front-ends."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from loguru import logger

LOG_FILE_NAME = "savevault.log"

# Stdlib loggers of the HTTP stack; their request lines drown out ours
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logger(log_dir: Path | None = None, verbose: bool = False) -> Path | None:
    """Configure a stderr sink and, when *log_dir* is given, a rotating file sink.

    Returns the log file path, or None when only the console is used.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "INFO",
        format="<green>{time:HH:mm:ss}</green> | <level>{level:<7}</level> | {message}",
        colorize=True,
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not log_dir:
        return None

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME
    logger.add(
        str(log_file),
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {name}:{function}:{line} | {message}",
        rotation="5 MB",
        retention="7 days",
        encoding="utf-8",
    )
    return log_file
