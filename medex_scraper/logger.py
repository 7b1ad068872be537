"""Logging setup: console plus a size-rotated log file under ``log_dir``."""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Union

LOGGER_NAME = "medex_scraper"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# 10MB per file, keep 5
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def setup_logger(log_dir: str = "logs", level: Union[int, str] = logging.INFO,
                 log_file: str = "scraper.log") -> logging.Logger:
    """Configure the ``medex_scraper`` logger once per process.

    *level* may be a number or a name such as ``"DEBUG"``. Calling this
    again only updates the level; handlers are never duplicated.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    os.makedirs(log_dir, exist_ok=True)
    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(fmt)
    logger.addHandler(console)

    rotating = RotatingFileHandler(
        os.path.join(log_dir, log_file),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    rotating.setLevel(level)
    rotating.setFormatter(fmt)
    logger.addHandler(rotating)

    return logger
