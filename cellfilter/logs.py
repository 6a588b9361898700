"""Logging setup for applications embedding the engine."""

from __future__ import annotations

import logging

from cellfilter.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    """Attach a stream handler to the cellfilter logger tree."""
    logger = logging.getLogger("cellfilter")
    logger.setLevel(level if level is not None else settings.LOG_LEVEL.upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
