"""
Fulfillment Orders — Storage Models
===================================
RULES:
- An Order and all its OrderItems are written in one transaction
  by the coordinator; nothing else inserts them.
- After commit only `status`, `refunded_quantity` and Refund rows
  change. Prices, quantities and the breakdown are frozen.
- The stored breakdown re-adds to `total` exactly
  (see Order.breakdown_total).
"""

from django.db import models

from engines.catalog.models import ItemKind
from engines.pricing.pipeline import reconstruct_total


MONEY = dict(max_digits=12, decimal_places=2)


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class OrderSource(models.TextChoices):
    POS = "pos", "Point of sale"
    ECOMMERCE = "ecommerce", "E-commerce"
    PURCHASE_RECEIPT = "purchase_receipt", "Goods received"


class OrderStatus(models.TextChoices):
    COMPLETED = "completed", "Completed"
    REFUNDED = "refunded", "Refunded"
    PARTIALLY_REFUNDED = "partially-refunded", "Partially refunded"
    PENDING_PAYMENT = "pending_payment", "Pending payment"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    CANCELLED = "cancelled", "Cancelled"
    RECEIVED = "received", "Received"


STATUSES_BY_SOURCE = {
    OrderSource.POS: frozenset({
        OrderStatus.COMPLETED,
        OrderStatus.REFUNDED,
        OrderStatus.PARTIALLY_REFUNDED,
    }),
    OrderSource.ECOMMERCE: frozenset({
        OrderStatus.PENDING_PAYMENT,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    }),
    OrderSource.PURCHASE_RECEIPT: frozenset({
        OrderStatus.RECEIVED,
        OrderStatus.COMPLETED,
    }),
}

TERMINAL_STATUSES = frozenset({OrderStatus.REFUNDED, OrderStatus.CANCELLED})


class PurchaseOrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    ORDERED = "ordered", "Ordered"
    RECEIVED = "received", "Partially received"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


# `received` and `completed` follow from goods receipts, never from a manual update.
MANUAL_PURCHASE_ORDER_STATUSES = frozenset({
    PurchaseOrderStatus.PENDING,
    PurchaseOrderStatus.APPROVED,
    PurchaseOrderStatus.ORDERED,
    PurchaseOrderStatus.CANCELLED,
})

FINAL_PURCHASE_ORDER_STATUSES = frozenset({PurchaseOrderStatus.COMPLETED, PurchaseOrderStatus.CANCELLED})


class RefundType(models.TextChoices):
    FULL = "full", "Full"
    ITEMS = "items", "Selected items"
    PARTIAL = "partial", "Partial amount"


# ══════════════════════════════════════════════════════════════
# PURCHASE ORDERS
# ══════════════════════════════════════════════════════════════

class PurchaseOrder(models.Model):
    po_id = models.CharField(max_length=64, primary_key=True)
    vendor_name = models.CharField(max_length=255)
    vendor_email = models.CharField(max_length=255, blank=True, default="")
    vendor_phone = models.CharField(max_length=64, blank=True, default="")
    status = models.CharField(
        max_length=16,
        choices=PurchaseOrderStatus.choices,
        default=PurchaseOrderStatus.PENDING,
    )
    total_amount = models.DecimalField(default=0, **MONEY)
    expected_delivery = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    created_by = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "fulfillment_purchase_orders"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.po_id} ({self.vendor_name}, {self.status})"


class PurchaseOrderItem(models.Model):
    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name="items",
        db_column="po_id",
    )
    line_no = models.PositiveIntegerField()
    item_kind = models.CharField(max_length=16, choices=ItemKind.choices)
    item_id = models.UUIDField()
    color_id = models.UUIDField(null=True, blank=True)
    size_name = models.CharField(max_length=50, blank=True, default="")
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, blank=True, default="")
    unit = models.CharField(max_length=32, blank=True, default="")
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(**MONEY)
    received_quantity = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "fulfillment_purchase_order_items"
        ordering = ["purchase_order_id", "line_no"]
        constraints = [
            models.UniqueConstraint(
                fields=["purchase_order", "line_no"],
                name="uq_po_line_no",
            ),
        ]

    @property
    def is_fully_received(self) -> bool:
        return self.received_quantity >= self.quantity


class PurchaseOrderEvent(models.Model):
    """Timeline entry for a purchase order."""

    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name="timeline",
        db_column="po_id",
    )
    status = models.CharField(max_length=16, choices=PurchaseOrderStatus.choices)
    note = models.TextField(blank=True, default="")
    actor_id = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField()

    class Meta:
        db_table = "fulfillment_purchase_order_timeline"
        ordering = ["created_at", "id"]


# ══════════════════════════════════════════════════════════════
# ORDERS
# ══════════════════════════════════════════════════════════════

class Order(models.Model):
    order_id = models.CharField(max_length=64, primary_key=True)
    source = models.CharField(max_length=32, choices=OrderSource.choices)
    status = models.CharField(max_length=32, choices=OrderStatus.choices)

    # ── Header ────────────────────────────────────────────────
    customer_name = models.CharField(max_length=255, blank=True, default="")
    customer_phone = models.CharField(max_length=64, blank=True, default="")
    customer_email = models.CharField(max_length=255, blank=True, default="")
    customer_address = models.TextField(blank=True, default="")
    payment_method = models.CharField(max_length=32, blank=True, default="")
    delivery_zone = models.CharField(max_length=64, blank=True, default="")
    applied_coupon = models.CharField(max_length=50, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    header = models.JSONField(default=dict, blank=True)
    created_by = models.CharField(max_length=255, blank=True, default="")
    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.PROTECT,
        related_name="receipts",
        db_column="po_id",
        null=True,
        blank=True,
    )

    # ── Breakdown ─────────────────────────────────────────────
    subtotal = models.DecimalField(**MONEY)
    category_tax_total = models.DecimalField(**MONEY)
    full_bill_tax_total = models.DecimalField(**MONEY)
    discount = models.DecimalField(**MONEY)
    delivery_charge = models.DecimalField(**MONEY)
    total = models.DecimalField(**MONEY)
    applied_taxes = models.JSONField(default=list, blank=True)

    # ── Temporal ──────────────────────────────────────────────
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "fulfillment_orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["source", "status"], name="idx_order_source_status"),
            models.Index(fields=["created_at"], name="idx_order_created"),
        ]

    def breakdown_total(self):
        return reconstruct_total(
            subtotal=self.subtotal,
            category_tax_total=self.category_tax_total,
            full_bill_tax_total=self.full_bill_tax_total,
            discount=self.discount,
            delivery_charge=self.delivery_charge,
        )

    def __str__(self) -> str:
        return f"{self.order_id} ({self.source}, {self.status}, {self.total})"


class OrderItem(models.Model):
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="items",
        db_column="order_id",
    )
    line_no = models.PositiveIntegerField()
    item_kind = models.CharField(max_length=16, choices=ItemKind.choices)
    item_id = models.UUIDField()
    color_id = models.UUIDField(null=True, blank=True)
    size_id = models.UUIDField(null=True, blank=True)
    size_name = models.CharField(max_length=50, blank=True, default="")
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=100, blank=True, default="")
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(**MONEY)
    addons = models.JSONField(default=list, blank=True)
    line_total = models.DecimalField(**MONEY)
    refunded_quantity = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "fulfillment_order_items"
        ordering = ["order_id", "line_no"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "line_no"],
                name="uq_order_line_no",
            ),
        ]

    @property
    def refundable_quantity(self) -> int:
        return self.quantity - self.refunded_quantity


# ══════════════════════════════════════════════════════════════
# REFUNDS
# ══════════════════════════════════════════════════════════════

class Refund(models.Model):
    refund_id = models.CharField(max_length=64, primary_key=True)
    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name="refunds",
        db_column="order_id",
    )
    refund_type = models.CharField(max_length=16, choices=RefundType.choices)
    refund_method = models.CharField(max_length=32)
    amount = models.DecimalField(**MONEY)
    reason = models.TextField(blank=True, default="")
    processed_by = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField()

    class Meta:
        db_table = "fulfillment_refunds"
        ordering = ["-created_at"]


class RefundItem(models.Model):
    refund = models.ForeignKey(
        Refund,
        on_delete=models.CASCADE,
        related_name="items",
        db_column="refund_id",
    )
    order_item = models.ForeignKey(
        OrderItem,
        on_delete=models.PROTECT,
        related_name="refund_lines",
    )
    quantity = models.PositiveIntegerField()

    class Meta:
        db_table = "fulfillment_refund_items"
