"""Logging configuration helpers."""
from __future__ import annotations

import sys

from loguru import logger

_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"


def configure_logging(level: str = "INFO") -> None:
    """Route loguru output to stdout at the requested level."""
    logger.remove()
    logger.add(
        sink=sys.stdout,
        level=level.upper(),
        format=_FORMAT,
        backtrace=False,
        diagnose=False,
    )
    logger.debug("Logging configured at level {}", level.upper())
