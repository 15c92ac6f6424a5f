"""Logging configuration for the tracker service and command line."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name for terminal output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset = self.COLORS["RESET"]

        formatted = super().format(record)
        if record.levelname in formatted:
            formatted = formatted.replace(
                record.levelname, f"{color}{record.levelname}{reset}", 1
            )
        return formatted


def configure_logging(level: str | int = "INFO", stream: TextIO | None = None) -> None:
    """Route ``stardewtracker`` log records to a single stream handler.

    Colour is only applied when the stream is a terminal. Calling this again
    replaces the previously installed handler.
    """

    target = stream if stream is not None else sys.stderr
    handler = logging.StreamHandler(target)
    if hasattr(target, "isatty") and target.isatty():
        handler.setFormatter(ColoredFormatter(LOG_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    package_logger = logging.getLogger("stardewtracker")
    package_logger.setLevel(level)
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)


__all__ = ["ColoredFormatter", "configure_logging"]
