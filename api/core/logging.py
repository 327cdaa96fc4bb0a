"""
Logging setup for the API process.

One stdout handler, one format. Modules log through
`logging.getLogger(__name__)` with `key=value` style messages.
Request bodies are never logged.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )

    # Access lines duplicate what a reverse proxy already records.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
