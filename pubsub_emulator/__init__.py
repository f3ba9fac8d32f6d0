"""Push-only pub/sub emulator (in-memory only, no broker)."""

from pubsub_emulator.dispatcher import Dispatcher
from pubsub_emulator.errors import (
    AlreadyExists,
    DeliveryFailed,
    MalformedRequest,
    NotFound,
    PubSubError,
)
from pubsub_emulator.message import Message
from pubsub_emulator.registry import Registry
from pubsub_emulator.subscription import Subscription
from pubsub_emulator.topic import Topic

__all__ = [
    "AlreadyExists",
    "DeliveryFailed",
    "Dispatcher",
    "MalformedRequest",
    "Message",
    "NotFound",
    "PubSubError",
    "Registry",
    "Subscription",
    "Topic",
]
