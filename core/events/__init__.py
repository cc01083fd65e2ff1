"""
Fulfillment Event Bus — Public API
==================================
Orders commit first. Subscribers hear about them afterwards.
"""

from core.events.dispatcher import dispatch, dispatch_on_commit
from core.events.envelope import DomainEvent
from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
    HandlerNotCallableError,
    InvalidEventTypeFormat,
)
from core.events.registry import SubscriberRegistry, validate_event_type

__all__ = [
    "dispatch",
    "dispatch_on_commit",
    "DomainEvent",
    "SubscriberRegistry",
    "validate_event_type",
    "EventBusError",
    "InvalidEventTypeFormat",
    "DuplicateSubscriberError",
    "HandlerNotCallableError",
]
