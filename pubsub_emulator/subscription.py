"""Push subscription record."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Subscription:
    """A single push endpoint attached to one topic."""

    id: str
    endpoint: str
