"""
Logging configuration for tabsh.

All modules log through children of the ``tabsh`` logger; this module attaches the
handlers once, at startup.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

LOG_LEVEL_ENV = "TABSH_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_level(level: Optional[Union[str, int]] = None, default: str = "WARNING") -> int:
    """Explicit level, else $TABSH_LOG_LEVEL, else `default`."""
    value = level if level is not None else os.getenv(LOG_LEVEL_ENV) or default
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value).upper())
    return resolved if isinstance(resolved, int) else logging.WARNING


def configure_logging(level: Optional[Union[str, int]] = None, log_file: Optional[Path] = None,
                      default: str = "WARNING") -> logging.Logger:
    """Attach a stderr handler (and optionally a file handler) to the ``tabsh`` logger."""
    logger = logging.getLogger("tabsh")
    logger.setLevel(resolve_level(level, default))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger
