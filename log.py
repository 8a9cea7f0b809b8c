"""Logging utilities for Huertbeat."""

import logging
import os
import sys
import threading
from typing import Optional


_logger_init_lock = threading.Lock()


class HuertbeatFormatter(logging.Formatter):
    """Compact single-line formatter.

    Format: [{level[0]} {time} {module[:9]}] {message}
    Example: [I 14:23:45.123 sync     ] Now playing: Song - Artist
    """

    def format(self, record):
        level_char = record.levelname[0]
        module_padded = record.name.split(".")[-1][:9].ljust(9)
        timestamp = self.formatTime(record, "%H:%M:%S")
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"[{level_char} {timestamp}.{record.msecs:03.0f} {module_padded}] {message}"


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger for a Huertbeat module.

    Level comes from the argument, then HUERTBEAT_LOG_LEVEL, then INFO.
    """
    logger = logging.getLogger(name)

    if level is None:
        level = os.getenv("HUERTBEAT_LOG_LEVEL", "INFO")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    with _logger_init_lock:
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(HuertbeatFormatter())
            logger.addHandler(handler)
            logger.propagate = False

    return logger


def set_level(level: str):
    """Change the level of every logger created through get_logger()."""
    value = getattr(logging, level.upper(), logging.INFO)
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and any(
            isinstance(h.formatter, HuertbeatFormatter) for h in logger.handlers
        ):
            logger.setLevel(value)
