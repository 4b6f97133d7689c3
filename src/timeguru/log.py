# SPDX-License-Identifier: MIT

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from timeguru import configuration

LOGGER_NAME = "timeguru"

_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s"


def _resolve_level(verbose: bool) -> int:
    override = os.environ.get(configuration.LOG_LEVEL_ENV)
    if override:
        level = logging.getLevelName(override.strip().upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if verbose else logging.INFO


def configure_logging(
    verbose: bool = False,
    console: bool = True,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Wire the ``timeguru`` logger to a daily rotating file and, optionally, stderr.

    The stderr handler only lets errors through so command output stays
    readable; the interactive screen disables it entirely since anything
    written to the terminal would tear the layout.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = _resolve_level(verbose)
    logger.setLevel(level)
    logger.propagate = False

    file_path = log_file if log_file is not None else configuration.LOG_FILE_PATH
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            file_path, when="midnight", backupCount=7, encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
        )
        logger.addHandler(file_handler)
    except OSError as e:
        logger.addHandler(logging.NullHandler())
        logger.warning("could not open log file %s: %s", file_path, e)

    if console:
        console_handler = RichHandler(
            console=Console(stderr=True),
            level=logging.ERROR,
            show_time=False,
            show_path=False,
            markup=False,
        )
        logger.addHandler(console_handler)

    logger.debug("logging configured at level %s", logging.getLevelName(level))
    return logger
