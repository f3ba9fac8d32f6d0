"""Counters for delivery outcomes."""

import threading
from typing import Dict


class Metrics:
    """In-memory, thread-safe counter collector."""

    def __init__(self) -> None:
        self._counters: Dict[str, int] = {}
        self._lock = threading.Lock()

    def increment(self, name: str, value: int = 1) -> None:
        """Increment a counter."""
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def snapshot(self) -> Dict[str, int]:
        """Return a copy of all counters."""
        with self._lock:
            return dict(self._counters)
