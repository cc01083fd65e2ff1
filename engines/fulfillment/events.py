"""
Fulfillment Orders — Event Types and Payload Builders
=====================================================
Events are built inside the order transaction from the rows just
written, and dispatched only after commit. Payloads are plain JSON
values (money as strings).
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from core.events import DomainEvent
from engines.fulfillment.models import Order, OrderItem


FULFILLMENT_ORDER_COMMITTED_V1 = "fulfillment.order.committed.v1"
FULFILLMENT_ORDER_REFUNDED_V1 = "fulfillment.order.refunded.v1"
FULFILLMENT_ORDER_STATUS_CHANGED_V1 = "fulfillment.order.status_changed.v1"

FULFILLMENT_EVENT_TYPES = (
    FULFILLMENT_ORDER_COMMITTED_V1,
    FULFILLMENT_ORDER_REFUNDED_V1,
    FULFILLMENT_ORDER_STATUS_CHANGED_V1,
)


def _item_snapshot(item: OrderItem) -> dict:
    return {
        "line_no": item.line_no,
        "item_kind": item.item_kind,
        "item_id": str(item.item_id),
        "name": item.name,
        "size": item.size_name,
        "quantity": item.quantity,
        "unit_price": str(item.unit_price),
        "line_total": str(item.line_total),
    }


def order_snapshot(order: Order, items: Iterable[OrderItem]) -> dict:
    """The order as a notification or audit sink sees it."""
    return {
        "order_id": order.order_id,
        "source": order.source,
        "status": order.status,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "customer_phone": order.customer_phone,
        "payment_method": order.payment_method,
        "subtotal": str(order.subtotal),
        "category_tax_total": str(order.category_tax_total),
        "full_bill_tax_total": str(order.full_bill_tax_total),
        "discount": str(order.discount),
        "delivery_charge": str(order.delivery_charge),
        "total": str(order.total),
        "applied_coupon": order.applied_coupon,
        "items": [_item_snapshot(item) for item in items],
    }


def order_committed_event(
    order: Order,
    items: Iterable[OrderItem],
    *,
    actor_id: str,
    audit_module: str,
    notify: bool,
    occurred_at: datetime,
) -> DomainEvent:
    return DomainEvent(
        event_type=FULFILLMENT_ORDER_COMMITTED_V1,
        payload={
            "order": order_snapshot(order, items),
            "actor_id": actor_id,
            "module": audit_module,
            "notify": notify,
        },
        occurred_at=occurred_at,
    )


def order_refunded_event(
    order: Order,
    *,
    refund_id: str,
    refund_type: str,
    amount,
    actor_id: str,
    occurred_at: datetime,
) -> DomainEvent:
    return DomainEvent(
        event_type=FULFILLMENT_ORDER_REFUNDED_V1,
        payload={
            "order_id": order.order_id,
            "refund_id": refund_id,
            "refund_type": refund_type,
            "amount": str(amount),
            "status": order.status,
            "actor_id": actor_id,
            "module": order.source,
        },
        occurred_at=occurred_at,
    )


def order_status_changed_event(
    order: Order,
    items: Iterable[OrderItem],
    *,
    previous_status: str,
    actor_id: str,
    notify: bool,
    occurred_at: datetime,
) -> DomainEvent:
    return DomainEvent(
        event_type=FULFILLMENT_ORDER_STATUS_CHANGED_V1,
        payload={
            "order": order_snapshot(order, items),
            "previous_status": previous_status,
            "actor_id": actor_id,
            "module": order.source,
            "notify": notify,
        },
        occurred_at=occurred_at,
    )
