"""
Fulfillment Event Bus — Subscriber Registry
===========================================
Which handlers hear which committed events.

Rules:
- Event types are versioned: engine.entity.action.vN
- Any number of subscribers per event type, called in registration order
- The same handler may listen to an event type only once
- In-memory only, thread-safe
"""

import logging
import re
from threading import Lock
from typing import Callable, Mapping

from core.events.errors import (
    DuplicateSubscriberError,
    HandlerNotCallableError,
    InvalidEventTypeFormat,
)

logger = logging.getLogger("fulfillment.events")

EVENT_TYPE_PATTERN = re.compile(r"^[a-z_]+\.[a-z_]+\.[a-z_]+\.v[0-9]+$")


def validate_event_type(event_type) -> str:
    if not isinstance(event_type, str) or not EVENT_TYPE_PATTERN.match(event_type):
        raise InvalidEventTypeFormat(event_type)
    return event_type


class SubscriberRegistry:
    """Maps event_type → [(handler, subscriber_engine), ...]."""

    def __init__(self):
        self._subscribers: dict[str, list[tuple[Callable, str]]] = {}
        self._lock = Lock()

    def register_subscriber(
        self,
        event_type: str,
        handler: Callable,
        subscriber_engine: str,
    ) -> None:
        validate_event_type(event_type)
        if not callable(handler):
            raise HandlerNotCallableError(event_type, handler)

        handler_name = getattr(handler, "__qualname__", type(handler).__name__)
        with self._lock:
            entries = self._subscribers.setdefault(event_type, [])
            if any(existing == handler for existing, _ in entries):
                raise DuplicateSubscriberError(event_type, handler_name, subscriber_engine)
            entries.append((handler, subscriber_engine))

        logger.info(f"{subscriber_engine} subscribed {handler_name} to {event_type}")

    def register_many(
        self,
        subscriptions: Mapping[str, Callable],
        subscriber_engine: str,
    ) -> None:
        """Register one handler per event type for a subscriber engine."""
        for event_type, handler in subscriptions.items():
            self.register_subscriber(event_type, handler, subscriber_engine)

    def get_subscribers(self, event_type: str) -> list[tuple[Callable, str]]:
        with self._lock:
            return list(self._subscribers.get(event_type, []))

    def has_subscribers(self, event_type: str) -> bool:
        with self._lock:
            return bool(self._subscribers.get(event_type))
