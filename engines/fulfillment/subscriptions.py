"""
Fulfillment Orders — Post-Commit Subscribers
============================================
Two listeners on committed order events:

- notifications: customer emails (only when the event asks for it)
- audit: one audit entry per committed change

Both run after the order transaction has committed. They may fail;
the dispatcher logs the failure and the order stands.
"""

from __future__ import annotations

from core.audit import AuditLogger
from core.events import DomainEvent, SubscriberRegistry
from engines.fulfillment.events import (
    FULFILLMENT_ORDER_COMMITTED_V1,
    FULFILLMENT_ORDER_REFUNDED_V1,
    FULFILLMENT_ORDER_STATUS_CHANGED_V1,
)
from engines.fulfillment.notifications import NotificationDispatcher
from engines.inventory.events import INVENTORY_MATERIAL_SHORTFALL_RECORDED_V1


class OrderNotificationSubscriptionHandler:
    def __init__(self, dispatcher: NotificationDispatcher):
        self._dispatcher = dispatcher

    def handle_order_committed(self, event: DomainEvent) -> None:
        if event.payload.get("notify"):
            self._dispatcher.notify(event.payload["order"])

    def handle_status_changed(self, event: DomainEvent) -> None:
        if not event.payload.get("notify"):
            return
        snapshot = dict(event.payload["order"])
        snapshot["previous_status"] = event.payload["previous_status"]
        self._dispatcher.notify(snapshot)

    @property
    def subscriptions(self) -> dict:
        return {
            FULFILLMENT_ORDER_COMMITTED_V1: self.handle_order_committed,
            FULFILLMENT_ORDER_STATUS_CHANGED_V1: self.handle_status_changed,
        }


class AuditTrailSubscriptionHandler:
    def __init__(self, audit_logger: AuditLogger):
        self._audit = audit_logger

    def handle_order_committed(self, event: DomainEvent) -> None:
        order = event.payload["order"]
        self._audit.record(
            "CREATE",
            event.payload["module"],
            f"Order {order['order_id']} committed ({len(order['items'])} item(s), total {order['total']})",
            actor_id=event.payload["actor_id"],
            metadata={"order_id": order["order_id"], "status": order["status"]},
        )

    def handle_order_refunded(self, event: DomainEvent) -> None:
        payload = event.payload
        self._audit.record(
            "REFUND",
            payload["module"],
            f"Order {payload['order_id']} refunded ({payload['refund_type']}, {payload['amount']})",
            actor_id=payload["actor_id"],
            metadata={"order_id": payload["order_id"], "refund_id": payload["refund_id"]},
        )

    def handle_status_changed(self, event: DomainEvent) -> None:
        order = event.payload["order"]
        self._audit.record(
            "UPDATE",
            event.payload["module"],
            f"Order {order['order_id']} status {event.payload['previous_status']} → {order['status']}",
            actor_id=event.payload["actor_id"],
            metadata={"order_id": order["order_id"]},
        )

    def handle_material_shortfall(self, event: DomainEvent) -> None:
        payload = event.payload
        self._audit.record(
            "SHORTFALL",
            "inventory",
            f"Raw material {payload['material_id']} short by {payload['shortfall']} for {payload['reference']}",
            metadata=dict(payload),
        )

    @property
    def subscriptions(self) -> dict:
        return {
            FULFILLMENT_ORDER_COMMITTED_V1: self.handle_order_committed,
            FULFILLMENT_ORDER_REFUNDED_V1: self.handle_order_refunded,
            FULFILLMENT_ORDER_STATUS_CHANGED_V1: self.handle_status_changed,
            INVENTORY_MATERIAL_SHORTFALL_RECORDED_V1: self.handle_material_shortfall,
        }


def build_subscriber_registry(
    *,
    notifier: NotificationDispatcher,
    audit_logger: AuditLogger,
) -> SubscriberRegistry:
    registry = SubscriberRegistry()
    registry.register_many(
        OrderNotificationSubscriptionHandler(notifier).subscriptions,
        subscriber_engine="notifications",
    )
    registry.register_many(
        AuditTrailSubscriptionHandler(audit_logger).subscriptions,
        subscriber_engine="audit",
    )
    return registry
