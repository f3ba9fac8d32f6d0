"""Observability: logging and delivery counters for the emulator."""

from pubsub_emulator.observability.logger import configure_logging, get_logger
from pubsub_emulator.observability.metrics import Metrics

__all__ = ["configure_logging", "get_logger", "Metrics"]
