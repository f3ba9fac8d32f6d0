"""Topic: a named channel owning its push subscriptions (in-memory only)."""

from typing import Dict, List

from pubsub_emulator.errors import AlreadyExists, NotFound
from pubsub_emulator.observability import get_logger
from pubsub_emulator.rwlock import ReadWriteLock
from pubsub_emulator.subscription import Subscription

logger = get_logger("pubsub_emulator.topic")


class Topic:
    """In-memory named channel; guards its subscription map with its own reader/writer lock."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._subscriptions: Dict[str, Subscription] = {}
        self._lock = ReadWriteLock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def subscription_count(self) -> int:
        with self._lock.read():
            return len(self._subscriptions)

    def add_subscription(self, subscription_id: str, endpoint: str) -> Subscription:
        """Attach a push endpoint. Raises AlreadyExists if the id is already on this topic."""
        with self._lock.write():
            if subscription_id in self._subscriptions:
                raise AlreadyExists(
                    f"could not create sub {subscription_id}, it already exists in topic {self._name}"
                )
            subscription = Subscription(id=subscription_id, endpoint=endpoint)
            self._subscriptions[subscription_id] = subscription
        logger.info(
            "subscription_created topic=%s subscription_id=%s endpoint=%s",
            self._name,
            subscription_id,
            endpoint,
            extra={"topic": self._name, "subscription_id": subscription_id, "endpoint": endpoint},
        )
        return subscription

    def remove_subscription(self, subscription_id: str) -> Subscription:
        """Detach a subscription by id. Raises NotFound if absent."""
        with self._lock.write():
            subscription = self._subscriptions.pop(subscription_id, None)
        if subscription is None:
            raise NotFound(
                f"could not delete sub {subscription_id} in topic {self._name} because it doesn't exist"
            )
        logger.info(
            "subscription_deleted topic=%s subscription_id=%s",
            self._name,
            subscription_id,
            extra={"topic": self._name, "subscription_id": subscription_id},
        )
        return subscription

    def get_subscription(self, subscription_id: str) -> Subscription:
        with self._lock.read():
            subscription = self._subscriptions.get(subscription_id)
        if subscription is None:
            raise NotFound(f"sub {subscription_id} does not exist")
        return subscription

    def has_subscription(self, subscription_id: str) -> bool:
        with self._lock.read():
            return subscription_id in self._subscriptions

    def list_endpoints(self) -> List[str]:
        """Return a copy of the current push endpoints (under read lock). Empty topic gives []."""
        with self._lock.read():
            return [s.endpoint for s in self._subscriptions.values()]

    def __repr__(self) -> str:
        return f"Topic(name={self._name!r}, subscriptions={self.subscription_count})"
