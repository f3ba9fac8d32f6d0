"""In-memory topic and subscription registry for the server."""

import threading
from typing import Dict, List, Tuple

from pubsub_emulator.errors import AlreadyExists, NotFound
from pubsub_emulator.observability import get_logger
from pubsub_emulator.rwlock import ReadWriteLock
from pubsub_emulator.subscription import Subscription
from pubsub_emulator.topic import Topic

logger = get_logger("pubsub_emulator.registry")


class Registry:
    """
    In-memory registry of topics keyed by name.

    The topic map has its own reader/writer lock; each Topic guards its
    subscriptions separately. Locks are always taken Registry first, then Topic.
    """

    def __init__(self) -> None:
        self._topics: Dict[str, Topic] = {}
        self._lock = ReadWriteLock()
        # Serializes subscription creation only; topic lookups never wait on it.
        self._create_lock = threading.Lock()

    def create_topic(self, name: str) -> Topic:
        """Create an empty topic. Raises AlreadyExists if the name is taken."""
        with self._lock.write():
            if name in self._topics:
                raise AlreadyExists(f"could not create Topic {name}, it already exists")
            topic = Topic(name)
            self._topics[name] = topic
        logger.info("topic_created topic=%s", name, extra={"topic": name})
        return topic

    def get_topic(self, name: str) -> Topic:
        """Return topic by name. Raises NotFound if absent."""
        with self._lock.read():
            topic = self._topics.get(name)
        if topic is None:
            raise NotFound(f"topic {name} does not exist")
        return topic

    def find_subscription(self, subscription_id: str) -> Tuple[Topic, Subscription]:
        """Scan every topic for the subscription id; return (owning topic, subscription)."""
        with self._lock.read():
            for topic in self._topics.values():
                try:
                    return topic, topic.get_subscription(subscription_id)
                except NotFound:
                    continue
        raise NotFound(f"no sub with id {subscription_id} found")

    def create_subscription(self, topic_name: str, subscription_id: str, endpoint: str) -> Subscription:
        """
        Attach a push subscription to an existing topic.
        Raises NotFound if the topic is missing, AlreadyExists if the id is used by any topic.
        """
        with self._create_lock:
            with self._lock.read():
                topic = self._topics.get(topic_name)
                topics = list(self._topics.values())
            if topic is None:
                raise NotFound(
                    f"could not create sub {subscription_id} Topic {topic_name} does not exist"
                )
            # Topics are never deleted, and a topic created after the copy has no
            # subscriptions until a create runs, which waits on _create_lock.
            for other in topics:
                if other.has_subscription(subscription_id):
                    raise AlreadyExists(
                        f"could not create sub {subscription_id}, it already exists in topic {other.name}"
                    )
            return topic.add_subscription(subscription_id, endpoint)

    def remove_subscription(self, subscription_id: str) -> Subscription:
        """Remove a subscription by id from whichever topic owns it. Raises NotFound if absent."""
        try:
            topic, _ = self.find_subscription(subscription_id)
            return topic.remove_subscription(subscription_id)
        except NotFound:
            raise NotFound(
                f"could not delete sub {subscription_id} because it doesn't exist"
            ) from None

    def list_topics(self) -> List[Topic]:
        with self._lock.read():
            return list(self._topics.values())

    def topic_count(self) -> int:
        """Number of topics."""
        with self._lock.read():
            return len(self._topics)

    def subscription_count(self) -> int:
        """Total number of subscriptions across all topics."""
        return sum(topic.subscription_count for topic in self.list_topics())
