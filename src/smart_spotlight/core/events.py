"""Named event channels with scoped subscriptions."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Subscription:
    """Handle for one registered handler; releasing it twice is a no-op."""

    def __init__(self, bus: "EventBus", channel: str, handler: Handler):
        self._bus = bus
        self.channel = channel
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def release(self) -> None:
        if not self._active:
            return
        self._active = False
        self._bus._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class EventBus:
    """Process-wide publish/subscribe keyed by channel name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: dict[str, list[Subscription]] = {}

    def subscribe(self, channel: str, handler: Handler) -> Subscription:
        subscription = Subscription(self, channel, handler)
        with self._lock:
            self._subscriptions.setdefault(channel, []).append(subscription)
        logger.debug("Subscribed to %s (%d handlers)", channel, self.subscriber_count(channel))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.release()

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscriptions.get(channel, []))

    def publish(self, channel: str, payload: Any) -> int:
        """Deliver ``payload`` to every handler on ``channel``; returns the delivery count."""
        with self._lock:
            targets = list(self._subscriptions.get(channel, []))
        delivered = 0
        for subscription in targets:
            if not subscription.active:
                continue
            try:
                subscription.handler(payload)
                delivered += 1
            except Exception:
                logger.exception("Handler for %s failed", channel)
        return delivered

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            handlers = self._subscriptions.get(subscription.channel, [])
            if subscription in handlers:
                handlers.remove(subscription)
            if not handlers:
                self._subscriptions.pop(subscription.channel, None)
        logger.debug("Unsubscribed from %s", subscription.channel)
