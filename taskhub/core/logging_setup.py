"""Logging configuration for the API process and the cleanup worker."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are noisy at INFO.
_CHATTY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine")


def setup_logging(level: str | int = logging.INFO, *, debug: bool = False) -> None:
    """
    Configure the root logger once, early at startup.

    Existing root handlers are replaced so repeated calls (tests, reload)
    do not duplicate output.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    if not debug:
        for name in _CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
