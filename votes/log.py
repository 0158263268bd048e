"""
Logging

Named console loggers for the vote tally package.
"""

from __future__ import annotations
from typing import Dict
import logging

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_LOGGERS: Dict[str, logging.Logger] = {}


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Create or retrieve a named logger under the ``votes`` namespace.

    Loggers are cached so repeated calls never stack handlers.
    """
    qualified = name if name.startswith("votes") else f"votes.{name}"
    if qualified in _LOGGERS:
        return _LOGGERS[qualified]

    logger = logging.getLogger(qualified)
    logger.setLevel(level)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(console)

    logger.propagate = False
    _LOGGERS[qualified] = logger

    return logger
