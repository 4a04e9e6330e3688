"""Logging utilities shared across the quotation pipeline."""
from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Initialize basic logging with a shared format and log level.

    The level can be provided directly or via the ``LOG_LEVEL`` environment
    variable (defaults to ``INFO``). The dispatcher, mailbox poller, CLI and
    review dashboard all log through the same root configuration, so the
    tick and poll threads interleave readably in one stream.
    """

    resolved_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=resolved_level, format=LOG_FORMAT)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
