"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys

from period_calculator.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s — %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(settings: Settings | None = None) -> logging.Logger:
    """Configure root logging from settings and return the package logger.

    Unknown level names fall back to INFO.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
    )
    logger = logging.getLogger("period_calculator")
    logger.setLevel(level)
    logger.debug("Logging configured for %s (%s)", settings.app_name, settings.environment)
    return logger
