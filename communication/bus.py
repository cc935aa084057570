import asyncio
import time
from core.errors import BusError
from internal.logging import get_logger

STATE_TOPIC = "state"
CONTROL_TOPIC = "control"


class Subscriber:
    __slots__ = ("name", "queue", "topics", "created_at", "received", "dropped")

    def __init__(self, name, queue, topics=None):
        self.name = name
        self.queue = queue
        self.topics = topics or set()
        self.created_at = time.time()
        self.received = 0
        self.dropped = 0

    def wants(self, topic):
        return not self.topics or topic in self.topics


class EventBus:
    """Copy-on-write pub/sub carrying tick snapshots to renderers.

    Publishing never blocks: a subscriber whose queue is full misses the
    item and its ``dropped`` counter goes up.
    """

    def __init__(self, queue_size=50):
        self._lock = asyncio.Lock()
        self._subscribers = {}
        self._subscribers_snapshot = []
        self._queue_size = queue_size
        self._log = get_logger()
        self.total_published = 0
        self.total_delivered = 0
        self.total_dropped = 0
        self.published_by_topic = {}

    async def subscribe(self, name, max_queue_size=None, topics=None):
        if not name:
            raise BusError("subscriber name must not be empty", subscriber_name=name)
        async with self._lock:
            if name in self._subscribers:
                return self._subscribers[name]
            subscriber = Subscriber(name, asyncio.Queue(maxsize=max_queue_size or self._queue_size),
                                    set(topics) if topics else set())
            self._subscribers[name] = subscriber
            self._subscribers_snapshot = list(self._subscribers.values())
            self._log.info("subscriber added", subscriber=name, topics=sorted(subscriber.topics))
            return subscriber

    async def unsubscribe(self, name):
        async with self._lock:
            if name not in self._subscribers:
                return False
            del self._subscribers[name]
            self._subscribers_snapshot = list(self._subscribers.values())
            self._log.info("subscriber removed", subscriber=name)
            return True

    async def publish(self, item, topic=STATE_TOPIC):
        delivered = dropped = 0
        for subscriber in self._subscribers_snapshot:
            if not subscriber.wants(topic):
                continue
            try:
                subscriber.queue.put_nowait(item)
                subscriber.received += 1
                delivered += 1
            except asyncio.QueueFull:
                subscriber.dropped += 1
                dropped += 1
        self.total_published += 1
        self.total_delivered += delivered
        self.total_dropped += dropped
        self.published_by_topic[topic] = self.published_by_topic.get(topic, 0) + 1
        return delivered

    async def notify(self, kind, **fields):
        """Publish a control notice such as ``paused`` or ``engine_stopped``."""
        return await self.publish({"kind": kind, "timestamp": time.time(), **fields}, topic=CONTROL_TOPIC)

    def get_stats(self):
        return {
            "subscriber_count": len(self._subscribers_snapshot),
            "total_published": self.total_published,
            "total_delivered": self.total_delivered,
            "total_dropped": self.total_dropped,
            "by_topic": dict(self.published_by_topic),
        }

    async def get_subscriber_info(self):
        return [
            {   "name": subscriber.name,
                "topics": sorted(subscriber.topics),
                "queued": subscriber.queue.qsize(),
                "received": subscriber.received,
                "dropped": subscriber.dropped
            } for subscriber in self._subscribers_snapshot
        ]
