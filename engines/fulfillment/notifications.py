"""
Fulfillment Orders — Customer Notifications
===========================================
Best effort. Called from post-commit subscribers only; a failure here
is logged by the dispatcher and never reaches the order.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger("fulfillment.notifications")


class NotificationDispatcher(Protocol):
    def notify(self, order_snapshot: dict) -> None:
        ...


def _subject(snapshot: dict) -> str:
    if snapshot.get("previous_status"):
        return f"Order {snapshot['order_id']} is now {snapshot['status']}"
    return f"Order confirmation {snapshot['order_id']}"


def _body(snapshot: dict) -> str:
    currency = settings.FULFILLMENT.get("CURRENCY", "")
    lines = [f"Hello {snapshot.get('customer_name') or 'customer'},", ""]
    if snapshot.get("previous_status"):
        lines.append(
            f"Your order {snapshot['order_id']} moved from "
            f"{snapshot['previous_status']} to {snapshot['status']}."
        )
    else:
        lines.append(f"Thank you for your order {snapshot['order_id']}.")
        lines.append("")
        for item in snapshot.get("items", ()):
            size = f" ({item['size']})" if item.get("size") else ""
            lines.append(
                f"  {item['quantity']} x {item['name']}{size}: {currency} {item['line_total']}"
            )
    lines.extend(["", f"Total: {currency} {snapshot['total']}"])
    return "\n".join(lines)


class EmailNotificationDispatcher:
    """Sends through Django's configured EMAIL_BACKEND."""

    def notify(self, order_snapshot: dict) -> None:
        recipient = order_snapshot.get("customer_email")
        if not recipient:
            logger.debug(f"No customer email on {order_snapshot['order_id']}, nothing sent")
            return
        send_mail(
            _subject(order_snapshot),
            _body(order_snapshot),
            settings.DEFAULT_FROM_EMAIL,
            [recipient],
            fail_silently=False,
        )
        logger.info(f"Notification sent for {order_snapshot['order_id']} to {recipient}")


class InMemoryNotificationDispatcher:
    """Records snapshots instead of sending. `fail=True` makes every notify raise."""

    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self._sent: list[dict] = []
        self._lock = threading.Lock()

    def notify(self, order_snapshot: dict) -> None:
        if self.fail:
            raise ConnectionError("notification channel unavailable")
        with self._lock:
            self._sent.append(dict(order_snapshot))

    @property
    def sent(self) -> tuple[dict, ...]:
        with self._lock:
            return tuple(self._sent)
