"""
Fulfillment Orders — Application Services
=========================================
Operations around committed orders:

    PurchasingService.create_purchase_order        → PurchaseOrder (pending)
    PurchasingService.receive_goods                → GRN order via the coordinator
    PurchasingService.update_purchase_order_status → approval steps + timeline
    OrderService.refund_order                      → Refund, stock returned if any
    OrderService.update_order_status               → status + post-commit notice

Each operation is one transaction. Stock only ever moves through the
StockLedger, events only ever leave through dispatch_on_commit.
"""

from __future__ import annotations

import logging
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Sum

from core.commands.rejection import first_rejection
from core.errors import InvalidItemError, NotFoundError, TransactionFailure, ValidationError
from core.events import SubscriberRegistry, dispatch_on_commit
from core.identity import (
    PERMISSION_GOODS_RECEIVE,
    PERMISSION_ORDER_REFUND,
    PERMISSION_ORDER_STATUS,
    PERMISSION_PURCHASE_ORDER_CREATE,
    Principal,
    require_permission,
)
from core.primitives import ZERO, money_sum, to_money
from core.time import Clock
from engines.catalog.lookup import CatalogLookup, ResolvedItem, StockGranularity, StockLocator
from engines.catalog.models import ItemKind
from engines.fulfillment.commands import (
    CustomerInfo,
    GoodsReceipt,
    OrderLine,
    OrderRequest,
    PurchaseOrderRequest,
    RefundRequest,
)
from engines.fulfillment.context import purchase_receipt_context
from engines.fulfillment.coordinator import OrderTransactionCoordinator
from engines.fulfillment.events import order_refunded_event, order_status_changed_event
from engines.fulfillment.ids import OrderIdProvider
from engines.fulfillment.models import (
    FINAL_PURCHASE_ORDER_STATUSES,
    MANUAL_PURCHASE_ORDER_STATUSES,
    STATUSES_BY_SOURCE,
    TERMINAL_STATUSES,
    Order,
    OrderSource,
    OrderStatus,
    PurchaseOrder,
    PurchaseOrderEvent,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    Refund,
    RefundItem,
    RefundType,
)
from engines.fulfillment.policies import LINE_SHAPE_POLICIES, RECEIPT_CATALOG_POLICIES
from engines.inventory.ledger import StockLedger
from engines.inventory.models import MovementType

logger = logging.getLogger("fulfillment.orders")


@dataclass(frozen=True)
class ReceiptResult:
    receipt_id: str
    purchase_order_id: str
    purchase_order_status: str
    total: Decimal

    def to_dict(self) -> dict:
        return {
            "receiptId": self.receipt_id,
            "purchaseOrderId": self.purchase_order_id,
            "purchaseOrderStatus": self.purchase_order_status,
            "total": str(self.total),
        }


@dataclass(frozen=True)
class RefundResult:
    refund_id: str
    order_id: str
    amount: Decimal
    order_status: str

    def to_dict(self) -> dict:
        return {
            "refundId": self.refund_id,
            "orderId": self.order_id,
            "amount": str(self.amount),
            "status": self.order_status,
        }


@dataclass(frozen=True)
class PurchaseOrderStatusResult:
    purchase_order_id: str
    status: str
    updated_at: datetime
    timeline: tuple[PurchaseOrderEvent, ...]

    def to_dict(self) -> dict:
        return {
            "purchaseOrderId": self.purchase_order_id,
            "status": self.status,
            "updatedAt": self.updated_at.isoformat(),
            "timeline": [
                {
                    "status": event.status,
                    "note": event.note,
                    "actorId": event.actor_id,
                    "createdAt": event.created_at.isoformat(),
                }
                for event in self.timeline
            ],
        }


@contextmanager
def _storage_errors(stage: str):
    """Re-raise storage errors from a service transaction as TransactionFailure."""
    try:
        yield
    except DatabaseError as exc:
        raise TransactionFailure(stage, exc) from exc


# ══════════════════════════════════════════════════════════════
# PURCHASING
# ══════════════════════════════════════════════════════════════

class PurchasingService:
    def __init__(
        self,
        *,
        coordinator: OrderTransactionCoordinator,
        catalog: CatalogLookup,
        id_provider: OrderIdProvider,
        clock: Clock,
    ):
        self._coordinator = coordinator
        self._catalog = catalog
        self._ids = id_provider
        self._clock = clock

    def create_purchase_order(self, request: PurchaseOrderRequest, principal: Principal) -> PurchaseOrder:
        require_permission(principal, PERMISSION_PURCHASE_ORDER_CREATE)
        if not request.vendor_name:
            raise ValidationError("vendorName", "vendorName is required.")
        if not request.items:
            raise ValidationError("items", "A purchase order needs at least one item.")

        with _storage_errors("persisting"), transaction.atomic():
            now = self._clock.now_utc()
            resolved = self._resolve_purchase_lines(request)
            purchase_order = PurchaseOrder.objects.create(
                po_id=self._ids.new_id("purchase_order"),
                vendor_name=request.vendor_name,
                vendor_email=request.vendor_email,
                vendor_phone=request.vendor_phone,
                expected_delivery=request.expected_delivery,
                notes=request.notes,
                total_amount=money_sum(
                    to_money(line.unit_price * line.quantity) for line in request.items
                ),
                created_by=principal.actor_id,
                created_at=now,
            )
            PurchaseOrderItem.objects.bulk_create(
                PurchaseOrderItem(
                    purchase_order=purchase_order,
                    line_no=line_no,
                    item_kind=item.item_kind,
                    item_id=item.item_id,
                    color_id=item.color_id,
                    size_name=item.size_name,
                    name=item.name,
                    unit=item.unit,
                    quantity=line.quantity,
                    unit_price=to_money(line.unit_price),
                )
                for line_no, (line, item) in enumerate(zip(request.items, resolved), start=1)
            )
            PurchaseOrderEvent.objects.create(
                purchase_order=purchase_order,
                status=PurchaseOrderStatus.PENDING,
                note="Purchase order created",
                actor_id=principal.actor_id,
                created_at=now,
            )

        logger.info(
            f"Purchase order {purchase_order.po_id} created for {purchase_order.vendor_name}: "
            f"{len(request.items)} line(s), total {purchase_order.total_amount}"
        )
        return purchase_order

    def _resolve_purchase_lines(self, request: PurchaseOrderRequest) -> list[ResolvedItem]:
        """Resolve each line and apply the goods-receipt line rules, so every line can later be received."""
        resolved = []
        for index, line in enumerate(request.items):
            order_line = OrderLine(
                item_kind=line.item_kind,
                item_id=line.item_id,
                quantity=line.quantity,
                color_id=line.color_id,
                size=line.size,
            )
            rejection = first_rejection(LINE_SHAPE_POLICIES, order_line)
            if rejection is None:
                item = self._catalog.resolve(line.item_kind, line.item_id, line.color_id, line.size)
                rejection = first_rejection(RECEIPT_CATALOG_POLICIES, order_line, item=item)
            if rejection is not None:
                raise InvalidItemError.from_rejection(rejection, line_no=index)
            resolved.append(item)
        return resolved

    def receive_goods(self, po_id: str, receipt: GoodsReceipt, principal: Principal) -> ReceiptResult:
        """
        Record a goods-received note against a purchase order.

        Only lines flagged received with a positive quantity count. The
        purchase order becomes `completed` once every one of its lines
        has been received in full (across all receipts), else `received`.
        """
        require_permission(principal, PERMISSION_GOODS_RECEIVE)
        received_lines = receipt.received_lines
        if not received_lines:
            raise ValidationError("items", "At least one line must be received.")

        with _storage_errors("persisting"), transaction.atomic():
            purchase_order = PurchaseOrder.objects.select_for_update().filter(pk=po_id).first()
            if purchase_order is None:
                raise NotFoundError("purchase order", po_id)
            if purchase_order.status in (PurchaseOrderStatus.COMPLETED, PurchaseOrderStatus.CANCELLED):
                raise ValidationError(
                    "status",
                    f"Purchase order {po_id} is {purchase_order.status} and cannot receive goods.",
                )

            po_items = {item.line_no: item for item in purchase_order.items.select_for_update()}
            order_lines = []
            for receipt_line in received_lines:
                po_item = po_items.get(receipt_line.line_no)
                if po_item is None:
                    raise NotFoundError("purchase order line", f"{po_id}#{receipt_line.line_no}")
                order_lines.append(
                    OrderLine(
                        item_kind=po_item.item_kind,
                        item_id=str(po_item.item_id),
                        quantity=receipt_line.received_quantity,
                        color_id=str(po_item.color_id) if po_item.color_id else None,
                        size=po_item.size_name or None,
                        unit_price_override=po_item.unit_price,
                    )
                )

            header = {
                "purchaseOrderId": purchase_order.po_id,
                "receivedBy": receipt.received_by,
                "checkedBy": receipt.checked_by,
            }
            if receipt.received_date is not None:
                header["receivedDate"] = receipt.received_date.isoformat()

            result = self._coordinator.submit(
                OrderRequest(
                    items=tuple(order_lines),
                    customer=CustomerInfo(
                        name=purchase_order.vendor_name,
                        phone=purchase_order.vendor_phone,
                        email=purchase_order.vendor_email,
                    ),
                    notes=receipt.notes,
                    header=header,
                ),
                purchase_receipt_context(principal),
            )
            Order.objects.filter(pk=result.order_id).update(purchase_order=purchase_order)

            for receipt_line in received_lines:
                po_item = po_items[receipt_line.line_no]
                po_item.received_quantity += receipt_line.received_quantity
                po_item.save(update_fields=["received_quantity"])

            complete = all(item.is_fully_received for item in po_items.values())
            purchase_order.status = (
                PurchaseOrderStatus.COMPLETED if complete else PurchaseOrderStatus.RECEIVED
            )
            purchase_order.save(update_fields=["status", "updated_at"])
            PurchaseOrderEvent.objects.create(
                purchase_order=purchase_order,
                status=purchase_order.status,
                note=f"Goods received ({result.order_id})",
                actor_id=principal.actor_id,
                created_at=self._clock.now_utc(),
            )

        logger.info(
            f"Goods received for {po_id} as {result.order_id}; "
            f"purchase order now {purchase_order.status}"
        )
        return ReceiptResult(
            receipt_id=result.order_id,
            purchase_order_id=purchase_order.po_id,
            purchase_order_status=purchase_order.status,
            total=result.total,
        )

    def update_purchase_order_status(
        self, po_id: str, status: str, principal: Principal, *, notes: str = ""
    ) -> PurchaseOrderStatusResult:
        """
        Move a purchase order through approval by hand.

        `received` and `completed` are only ever reached by receive_goods.
        Setting the current status again writes nothing.
        """
        require_permission(principal, PERMISSION_PURCHASE_ORDER_CREATE)
        if status not in PurchaseOrderStatus.values:
            raise ValidationError(
                "status", f"status must be one of {sorted(PurchaseOrderStatus.values)}."
            )
        if status not in MANUAL_PURCHASE_ORDER_STATUSES:
            raise ValidationError("status", f"{status} is set by receiving goods.")

        with _storage_errors("persisting"), transaction.atomic():
            purchase_order = PurchaseOrder.objects.select_for_update().filter(pk=po_id).first()
            if purchase_order is None:
                raise NotFoundError("purchase order", po_id)
            previous = purchase_order.status
            if previous != status:
                if previous in FINAL_PURCHASE_ORDER_STATUSES:
                    raise ValidationError("status", f"Purchase order {po_id} is {previous}.")
                if previous == PurchaseOrderStatus.RECEIVED and status != PurchaseOrderStatus.CANCELLED:
                    raise ValidationError(
                        "status", f"Purchase order {po_id} has received goods and can only be cancelled."
                    )
                purchase_order.status = status
                purchase_order.save(update_fields=["status", "updated_at"])
                PurchaseOrderEvent.objects.create(
                    purchase_order=purchase_order,
                    status=status,
                    note=notes or f"Status changed to {status}",
                    actor_id=principal.actor_id,
                    created_at=self._clock.now_utc(),
                )
                logger.info(f"Purchase order {po_id} moved from {previous} to {status}")
            timeline = list(purchase_order.timeline.all())

        return PurchaseOrderStatusResult(
            purchase_order_id=purchase_order.po_id,
            status=purchase_order.status,
            updated_at=purchase_order.updated_at,
            timeline=tuple(timeline),
        )


# ══════════════════════════════════════════════════════════════
# REFUNDS + STATUS
# ══════════════════════════════════════════════════════════════

def _locator_for(item) -> StockLocator:
    if item.size_id is not None:
        return StockLocator(
            granularity=StockGranularity.SIZE,
            item_id=item.item_id,
            size_id=item.size_id,
            label=f"{item.name} / {item.size_name}",
        )
    granularity = (
        StockGranularity.MATERIAL if item.item_kind == ItemKind.MATERIAL else StockGranularity.PRODUCT
    )
    return StockLocator(granularity=granularity, item_id=item.item_id, label=item.name)


def _line_refund_amount(item, quantity: int) -> Decimal:
    return to_money(item.line_total * quantity / item.quantity)


class OrderService:
    def __init__(
        self,
        *,
        ledger: StockLedger,
        id_provider: OrderIdProvider,
        clock: Clock,
        subscriber_registry: SubscriberRegistry,
    ):
        self._ledger = ledger
        self._ids = id_provider
        self._clock = clock
        self._registry = subscriber_registry

    def refund_order(self, order_id: str, refund: RefundRequest, principal: Principal) -> RefundResult:
        require_permission(principal, PERMISSION_ORDER_REFUND)
        if refund.refund_type not in RefundType.values:
            raise ValidationError("refundType", f"refundType must be one of {sorted(RefundType.values)}.")
        if refund.refund_type == RefundType.ITEMS and not refund.lines:
            raise ValidationError("items", "An items refund needs at least one item.")
        if refund.refund_type == RefundType.PARTIAL and refund.amount is None:
            raise ValidationError("amount", "A partial refund needs an amount.")
        if refund.amount is not None and refund.amount <= 0:
            raise ValidationError("amount", "amount must be positive.")
        refund_methods = settings.FULFILLMENT.get("REFUND_METHODS", ())
        if refund.refund_method not in refund_methods:
            raise ValidationError("refundMethod", f"refundMethod must be one of {sorted(refund_methods)}.")

        with _storage_errors("mutating_stock"), transaction.atomic():
            order = Order.objects.select_for_update().filter(pk=order_id).first()
            if order is None:
                raise NotFoundError("order", order_id)
            if order.source != OrderSource.POS:
                raise ValidationError("orderId", "Only point-of-sale orders can be refunded.")
            if order.status in TERMINAL_STATUSES:
                raise ValidationError("status", f"Order {order_id} is already {order.status}.")

            items = {item.line_no: item for item in order.items.select_for_update()}
            if refund.refund_type == RefundType.FULL:
                returns = [
                    (item, item.refundable_quantity)
                    for item in items.values()
                    if item.refundable_quantity > 0
                ]
            elif refund.refund_type == RefundType.PARTIAL:
                returns = []
            else:
                returns = []
                requested = Counter()
                for index, line in enumerate(refund.lines):
                    item = items.get(line.line_no)
                    if item is None:
                        raise NotFoundError("order line", f"{order_id}#{line.line_no}")
                    requested[line.line_no] += line.quantity
                    if requested[line.line_no] > item.refundable_quantity:
                        raise ValidationError(
                            f"items[{index}].quantity",
                            f"Only {item.refundable_quantity} of '{item.name}' can still be refunded.",
                        )
                    returns.append((item, line.quantity))

            already_refunded = (
                Refund.objects.filter(order=order).aggregate(total=Sum("amount"))["total"] or ZERO
            )
            if refund.amount is not None:
                amount = to_money(refund.amount)
            elif refund.refund_type == RefundType.FULL:
                amount = order.total - already_refunded
            else:
                amount = money_sum(_line_refund_amount(item, quantity) for item, quantity in returns)
            if amount + already_refunded > order.total:
                raise ValidationError(
                    "amount",
                    f"Refund of {amount} exceeds the refundable balance "
                    f"{order.total - already_refunded} of order {order_id}.",
                )

            refund_row = Refund.objects.create(
                refund_id=self._ids.new_id("refund"),
                order=order,
                refund_type=refund.refund_type,
                refund_method=refund.refund_method,
                amount=amount,
                reason=refund.reason,
                processed_by=principal.actor_id,
                created_at=self._clock.now_utc(),
            )
            for item, quantity in returns:
                RefundItem.objects.create(refund=refund_row, order_item=item, quantity=quantity)
                self._ledger.increment(
                    _locator_for(item),
                    quantity,
                    reference=refund_row.refund_id,
                    movement_type=MovementType.RETURN_IN,
                )
                item.refunded_quantity += quantity
                item.save(update_fields=["refunded_quantity"])

            fully_returned = all(item.refundable_quantity == 0 for item in items.values())
            balance_cleared = already_refunded + amount == order.total
            order.status = (
                OrderStatus.REFUNDED
                if refund.refund_type == RefundType.FULL or fully_returned or balance_cleared
                else OrderStatus.PARTIALLY_REFUNDED
            )
            order.save(update_fields=["status", "updated_at"])

            dispatch_on_commit(
                [
                    order_refunded_event(
                        order,
                        refund_id=refund_row.refund_id,
                        refund_type=refund.refund_type,
                        amount=amount,
                        actor_id=principal.actor_id,
                        occurred_at=self._clock.now_utc(),
                    )
                ],
                self._registry,
            )

        logger.info(f"Order {order_id} refunded ({refund.refund_type}, {amount}): now {order.status}")
        return RefundResult(
            refund_id=refund_row.refund_id,
            order_id=order_id,
            amount=amount,
            order_status=order.status,
        )

    def update_order_status(self, order_id: str, status: str, principal: Principal) -> Order:
        require_permission(principal, PERMISSION_ORDER_STATUS)
        if status not in OrderStatus.values:
            raise ValidationError("status", f"Unknown status '{status}'.")
        if status in (OrderStatus.REFUNDED, OrderStatus.PARTIALLY_REFUNDED):
            raise ValidationError("status", "Refund statuses are set by the refund operation.")

        with _storage_errors("persisting"), transaction.atomic():
            order = Order.objects.select_for_update().filter(pk=order_id).first()
            if order is None:
                raise NotFoundError("order", order_id)
            if status not in STATUSES_BY_SOURCE[order.source]:
                raise ValidationError(
                    "status",
                    f"Status '{status}' is not valid for {order.source} orders.",
                )
            previous = order.status
            if previous == status:
                return order
            if previous in TERMINAL_STATUSES:
                raise ValidationError("status", f"Order {order_id} is {previous} and cannot change.")

            order.status = status
            order.save(update_fields=["status", "updated_at"])
            dispatch_on_commit(
                [
                    order_status_changed_event(
                        order,
                        order.items.all(),
                        previous_status=previous,
                        actor_id=principal.actor_id,
                        notify=order.source == OrderSource.ECOMMERCE,
                        occurred_at=self._clock.now_utc(),
                    )
                ],
                self._registry,
            )

        logger.info(f"Order {order_id} status {previous} → {status}")
        return order
