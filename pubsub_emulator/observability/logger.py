"""Structured logging for emulator events (topic/subscription changes, publish, delivery)."""

import logging
import sys
from typing import Union

ROOT_LOGGER_NAME = "pubsub_emulator"
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Attach a stdout handler to the package root logger (once) and set its level."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package root so configure_logging() governs it."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
