"""Structured JSON logging.

Usage::

    from soulmap.logger import get_logger

    logger = get_logger(__name__)
    logger.warning("edge skipped", extra={"from_label": "mom"})
"""

from __future__ import annotations

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from soulmap.config import settings


def get_logger(name: str) -> logging.Logger:
    """Return a logger that writes one JSON object per record to stdout."""
    logger = logging.getLogger(name)

    # Prevent duplicate handlers if the logger is already configured
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")
    )
    logger.addHandler(handler)

    return logger
