"""
Fulfillment Event Bus — Registration Errors
===========================================
Raised while subscribers are wired into a SubscriberRegistry, which
happens once when the dependencies are built. Dispatch itself never
raises.
"""


class EventBusError(Exception):
    """A subscription the registry refuses to accept."""

    def __init__(self, message: str, *, event_type: str = ""):
        self.event_type = event_type
        super().__init__(message)


class InvalidEventTypeFormat(EventBusError):
    """Event type is not `<engine>.<entity>.<action>.v<N>`."""

    def __init__(self, event_type):
        super().__init__(
            f"Event type {event_type!r} must look like "
            f"'fulfillment.order.committed.v1'.",
            event_type=str(event_type or ""),
        )


class DuplicateSubscriberError(EventBusError):
    def __init__(self, event_type: str, handler_name: str, subscriber_engine: str):
        self.handler_name = handler_name
        self.subscriber_engine = subscriber_engine
        super().__init__(
            f"{handler_name} ({subscriber_engine}) already listens to {event_type}.",
            event_type=event_type,
        )


class HandlerNotCallableError(EventBusError):
    def __init__(self, event_type: str, handler):
        super().__init__(
            f"Subscriber for {event_type} must be callable, "
            f"got {type(handler).__name__}.",
            event_type=event_type,
        )
