"""
Fulfillment Event Bus — Dispatcher
==================================
Routes committed order events to their subscribers.

Handlers run sequentially in registration order. A handler that
raises is logged and counted; the remaining handlers still run and the
order that produced the event is never affected.
"""

import logging
from typing import Any, Callable, Iterable, Optional

from django.db import transaction

from core.events.registry import SubscriberRegistry

logger = logging.getLogger("fulfillment.events")


def _run_handler(
    handler: Callable[[Any], None],
    subscriber_engine: str,
    event: Any,
) -> Optional[dict]:
    handler_name = getattr(handler, "__qualname__", str(handler))
    try:
        handler(event)
    except Exception as exc:
        logger.error(
            f"Subscriber failed: {handler_name} ({subscriber_engine}) "
            f"for {event.event_type} [{event.event_id}]: {exc}",
            exc_info=True,
        )
        return {
            "handler": handler_name,
            "engine": subscriber_engine,
            "error": str(exc),
            "error_type": type(exc).__name__,
        }
    logger.debug(f"{event.event_type} delivered to {handler_name} ({subscriber_engine})")
    return None


def dispatch(event: Any, registry: SubscriberRegistry) -> dict:
    """
    Deliver one committed event to every subscriber of its type.

    Never raises. The returned summary carries event_type, event_id,
    subscribers_notified, subscribers_failed and a `failures` list of
    {handler, engine, error, error_type}.
    """
    subscribers = registry.get_subscribers(event.event_type)
    failures = [
        failure
        for failure in (
            _run_handler(handler, engine, event) for handler, engine in subscribers
        )
        if failure is not None
    ]
    result = {
        "event_type": event.event_type,
        "event_id": str(event.event_id),
        "subscribers_notified": len(subscribers) - len(failures),
        "subscribers_failed": len(failures),
        "failures": failures,
    }
    if subscribers:
        logger.info(
            f"{event.event_type} [{event.event_id}] dispatched: "
            f"{result['subscribers_notified']} ok, {result['subscribers_failed']} failed"
        )
    return result


def dispatch_on_commit(
    events: Iterable[Any],
    registry: SubscriberRegistry,
    *,
    using: str | None = None,
) -> None:
    """
    Schedule dispatch for when the current transaction commits.

    Callbacks registered inside a savepoint that rolls back are
    discarded by Django, so an aborted order never notifies anyone.
    Outside a transaction the dispatch runs immediately.
    """
    pending = tuple(events)
    if not pending:
        return
    transaction.on_commit(
        lambda: _dispatch_after_commit(pending, registry),
        using=using,
    )


def _dispatch_after_commit(events: tuple, registry: SubscriberRegistry) -> None:
    for event in events:
        try:
            dispatch(event, registry)
        except Exception as exc:
            logger.error(
                f"Post-commit dispatch failed for event "
                f"{event.event_id}: {exc}",
                exc_info=True,
            )
