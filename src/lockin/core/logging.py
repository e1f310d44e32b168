"""Logging setup for the tracker service."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Attach a single console handler to the ``lockin`` logger.

    Safe to call more than once; the handler is only installed the first time.
    """
    logger = logging.getLogger("lockin")
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
