"""Fan-out of PromptEvents to event-stream subscribers."""

from __future__ import annotations

import logging
import queue
import threading

from smart_spotlight.common.models import PromptEvent

logger = logging.getLogger(__name__)

SUBSCRIBER_QUEUE_SIZE = 256


class EventBroker:
    """Each subscriber gets its own queue; a full queue drops the event for that subscriber only."""

    def __init__(self, maxsize: int = SUBSCRIBER_QUEUE_SIZE):
        self._maxsize = maxsize
        self._lock = threading.Lock()
        self._subscribers: list[queue.Queue] = []

    def subscribe(self) -> queue.Queue:
        subscriber: queue.Queue = queue.Queue(maxsize=self._maxsize)
        with self._lock:
            self._subscribers.append(subscriber)
        logger.info("Event stream subscriber connected (%d total)", self.subscriber_count)
        return subscriber

    def unsubscribe(self, subscriber: queue.Queue):
        with self._lock:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)
        logger.info("Event stream subscriber disconnected")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: PromptEvent) -> int:
        with self._lock:
            targets = list(self._subscribers)
        delivered = 0
        for subscriber in targets:
            try:
                subscriber.put_nowait(event)
                delivered += 1
            except queue.Full:
                logger.warning("Subscriber queue full; dropping %s event", event.type)
        logger.debug("Published %s event for %s to %d subscribers", event.type, event.request_id, delivered)
        return delivered
