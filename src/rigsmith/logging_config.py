"""Logging setup for the rigsmith package.

Console output only; every module logs through ``logging.getLogger(__name__)``
so all records land under the ``rigsmith`` logger.
"""

import logging
import sys
from typing import Union

__all__ = ["setup_logging", "get_logger", "LOG_FORMAT"]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Configure the ``rigsmith`` logger.

    Args:
        level: Logging level, either a number or a name such as ``"DEBUG"``.
            Unknown names fall back to INFO.

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("rigsmith")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    return logger


def get_logger(name: str = "rigsmith") -> logging.Logger:
    if name == "rigsmith" or name.startswith("rigsmith."):
        return logging.getLogger(name)
    return logging.getLogger(f"rigsmith.{name}")
