"""
Fulfillment Orders — Request Commands
=====================================
Typed requests for every fulfillment operation, plus the parsers that
build them from camelCase JSON bodies.

Rules:
- Requests are frozen. No DB access, no business logic.
- Parsers check shape only (types, required keys) and raise
  ValidationError naming the offending field path.
- validate_order_request() applies the per-source rules (payment
  methods, customer fields, quantities) and runs before any
  transaction is opened.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email

from core.errors import ValidationError
from core.primitives import to_decimal
from engines.catalog.models import ItemKind
from engines.fulfillment.models import RefundType

if TYPE_CHECKING:
    from engines.fulfillment.context import OrderContext


# ══════════════════════════════════════════════════════════════
# ORDER SUBMISSION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CustomerInfo:
    name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""

    def get(self, field_name: str) -> str:
        return getattr(self, field_name, "")


@dataclass(frozen=True)
class OrderLine:
    """One requested line. Prices are never taken from the caller, except for goods receipts."""

    item_kind: str
    item_id: str
    quantity: Any
    color_id: Optional[str] = None
    size: Optional[str] = None
    addons: tuple[str, ...] = ()
    unit_price_override: Optional[Decimal] = None

    def __post_init__(self):
        object.__setattr__(self, "addons", tuple(self.addons))

    @property
    def has_variant_selection(self) -> bool:
        return self.color_id is not None or bool(self.size)


@dataclass(frozen=True)
class OrderRequest:
    items: tuple[OrderLine, ...]
    customer: CustomerInfo = field(default_factory=CustomerInfo)
    payment_method: str = ""
    delivery_zone_id: Optional[str] = None
    applied_coupon_code: Optional[str] = None
    notes: str = ""
    header: dict = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))


# ══════════════════════════════════════════════════════════════
# GOODS RECEIPT / PURCHASE ORDER
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ReceiptLine:
    line_no: int
    received_quantity: int
    received: bool = True


@dataclass(frozen=True)
class GoodsReceipt:
    lines: tuple[ReceiptLine, ...]
    received_by: str = ""
    checked_by: str = ""
    received_date: Optional[date] = None
    notes: str = ""

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))

    @property
    def received_lines(self) -> tuple[ReceiptLine, ...]:
        return tuple(
            line for line in self.lines
            if line.received and line.received_quantity > 0
        )


@dataclass(frozen=True)
class PurchaseOrderLine:
    item_kind: str
    item_id: str
    quantity: int
    unit_price: Decimal
    color_id: Optional[str] = None
    size: Optional[str] = None


@dataclass(frozen=True)
class PurchaseOrderRequest:
    vendor_name: str
    items: tuple[PurchaseOrderLine, ...]
    vendor_email: str = ""
    vendor_phone: str = ""
    expected_delivery: Optional[date] = None
    notes: str = ""

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))


# ══════════════════════════════════════════════════════════════
# REFUND / STATUS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RefundLine:
    line_no: int
    quantity: int


@dataclass(frozen=True)
class RefundRequest:
    refund_type: str
    amount: Optional[Decimal] = None
    reason: str = ""
    lines: tuple[RefundLine, ...] = ()
    refund_method: str = ""

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))


# ══════════════════════════════════════════════════════════════
# FIELD HELPERS
# ══════════════════════════════════════════════════════════════

def _require_mapping(value, field_name: str) -> Mapping:
    if not isinstance(value, Mapping):
        raise ValidationError(field_name, f"{field_name} must be an object.")
    return value


def _text(body: Mapping, key: str, field_name: Optional[str] = None, *, required: bool = False) -> str:
    field_name = field_name or key
    value = body.get(key)
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValidationError(field_name, f"{field_name} must be a string.")
    value = value.strip()
    if required and not value:
        raise ValidationError(field_name, f"{field_name} is required.")
    return value


def _optional_text(body: Mapping, key: str, field_name: str) -> Optional[str]:
    return _text(body, key, field_name) or None


def _positive_int(value, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(field_name, f"{field_name} must be a positive integer.")
    return value


def _non_negative_int(value, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(field_name, f"{field_name} must be a non-negative integer.")
    return value


def parse_amount(value, field_name: str = "amount") -> Decimal:
    """JSON numbers arrive as float; go through their text form, never float arithmetic."""
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = to_decimal(value, field_name=field_name)
    except ValueError as exc:
        raise ValidationError(field_name, str(exc)) from exc
    if amount < 0:
        raise ValidationError(field_name, f"{field_name} must not be negative.")
    return amount


def _date(body: Mapping, key: str) -> Optional[date]:
    value = body.get(key)
    if value in (None, ""):
        return None
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError(key, f"{key} must be an ISO date (YYYY-MM-DD).") from exc


def _list(body: Mapping, key: str) -> list:
    value = body.get(key)
    if not isinstance(value, list):
        raise ValidationError(key, f"{key} must be a list.")
    return value


# ══════════════════════════════════════════════════════════════
# PARSERS
# ══════════════════════════════════════════════════════════════

def _parse_addons(raw, field_name: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValidationError(field_name, f"{field_name} must be a list.")
    addons = []
    for index, entry in enumerate(raw):
        entry_field = f"{field_name}[{index}]"
        if isinstance(entry, Mapping):
            entry = entry.get("materialId") or entry.get("id")
        if not isinstance(entry, str) or not entry.strip():
            raise ValidationError(entry_field, f"{entry_field} must be a raw material id.")
        addons.append(entry.strip())
    return tuple(addons)


def parse_order_line(raw, index: int) -> OrderLine:
    prefix = f"items[{index}]"
    raw = _require_mapping(raw, prefix)
    return OrderLine(
        item_kind=_text(raw, "itemKind", f"{prefix}.itemKind") or ItemKind.PRODUCT,
        item_id=_text(raw, "itemId", f"{prefix}.itemId", required=True),
        quantity=raw.get("quantity"),
        color_id=_optional_text(raw, "colorId", f"{prefix}.colorId"),
        size=_optional_text(raw, "size", f"{prefix}.size"),
        addons=_parse_addons(raw.get("addons"), f"{prefix}.addons"),
    )


def parse_order_request(body) -> OrderRequest:
    body = _require_mapping(body, "body")

    customer_raw = body.get("customer") or {}
    customer_raw = _require_mapping(customer_raw, "customer")
    customer = CustomerInfo(
        name=_text(customer_raw, "name", "customer.name"),
        phone=_text(customer_raw, "phone", "customer.phone"),
        email=_text(customer_raw, "email", "customer.email"),
        address=_text(customer_raw, "address", "customer.address"),
    )

    items = tuple(
        parse_order_line(raw, index)
        for index, raw in enumerate(_list(body, "items"))
    )

    header = {}
    salesperson = _text(body, "salesperson")
    if salesperson:
        header["salesperson"] = salesperson

    return OrderRequest(
        items=items,
        customer=customer,
        payment_method=_text(body, "paymentMethod"),
        delivery_zone_id=_optional_text(body, "deliveryZoneId", "deliveryZoneId"),
        applied_coupon_code=_optional_text(body, "appliedCouponCode", "appliedCouponCode"),
        notes=_text(body, "notes"),
        header=header,
    )


def parse_goods_receipt(body) -> GoodsReceipt:
    body = _require_mapping(body, "body")
    lines = []
    for index, raw in enumerate(_list(body, "items")):
        prefix = f"items[{index}]"
        raw = _require_mapping(raw, prefix)
        received = raw.get("received", True)
        if not isinstance(received, bool):
            raise ValidationError(f"{prefix}.received", f"{prefix}.received must be a boolean.")
        lines.append(
            ReceiptLine(
                line_no=_positive_int(raw.get("lineNo"), f"{prefix}.lineNo"),
                received_quantity=_non_negative_int(
                    raw.get("receivedQuantity"), f"{prefix}.receivedQuantity"
                ),
                received=received,
            )
        )
    return GoodsReceipt(
        lines=tuple(lines),
        received_by=_text(body, "receivedBy"),
        checked_by=_text(body, "checkedBy"),
        received_date=_date(body, "receivedDate"),
        notes=_text(body, "notes"),
    )


def parse_purchase_order_request(body) -> PurchaseOrderRequest:
    body = _require_mapping(body, "body")
    items = []
    for index, raw in enumerate(_list(body, "items")):
        prefix = f"items[{index}]"
        raw = _require_mapping(raw, prefix)
        if "unitPrice" not in raw:
            raise ValidationError(f"{prefix}.unitPrice", f"{prefix}.unitPrice is required.")
        items.append(
            PurchaseOrderLine(
                item_kind=_text(raw, "itemKind", f"{prefix}.itemKind") or ItemKind.MATERIAL,
                item_id=_text(raw, "itemId", f"{prefix}.itemId", required=True),
                quantity=_positive_int(raw.get("quantity"), f"{prefix}.quantity"),
                unit_price=parse_amount(raw.get("unitPrice"), f"{prefix}.unitPrice"),
                color_id=_optional_text(raw, "colorId", f"{prefix}.colorId"),
                size=_optional_text(raw, "size", f"{prefix}.size"),
            )
        )
    if not items:
        raise ValidationError("items", "A purchase order needs at least one item.")
    return PurchaseOrderRequest(
        vendor_name=_text(body, "vendorName", required=True),
        items=tuple(items),
        vendor_email=_text(body, "vendorEmail"),
        vendor_phone=_text(body, "vendorPhone"),
        expected_delivery=_date(body, "expectedDelivery"),
        notes=_text(body, "notes"),
    )


def parse_refund_request(body) -> RefundRequest:
    body = _require_mapping(body, "body")
    refund_type = _text(body, "refundType", required=True)
    if refund_type not in RefundType.values:
        raise ValidationError(
            "refundType", f"refundType must be one of {sorted(RefundType.values)}."
        )

    amount = None
    if body.get("amount") is not None:
        amount = parse_amount(body["amount"])
    if refund_type == RefundType.PARTIAL and amount is None:
        raise ValidationError("amount", "A partial refund needs an amount.")

    lines = []
    if refund_type == RefundType.ITEMS:
        for index, raw in enumerate(_list(body, "items")):
            prefix = f"items[{index}]"
            raw = _require_mapping(raw, prefix)
            lines.append(
                RefundLine(
                    line_no=_positive_int(raw.get("lineNo"), f"{prefix}.lineNo"),
                    quantity=_positive_int(raw.get("quantity"), f"{prefix}.quantity"),
                )
            )
        if not lines:
            raise ValidationError("items", "An items refund needs at least one item.")

    return RefundRequest(
        refund_type=refund_type,
        amount=amount,
        reason=_text(body, "reason"),
        lines=tuple(lines),
        refund_method=_text(body, "refundMethod", required=True),
    )


# ══════════════════════════════════════════════════════════════
# REQUEST VALIDATION (before the transaction)
# ══════════════════════════════════════════════════════════════

def validate_order_request(request: OrderRequest, context: "OrderContext") -> None:
    """
    Raise ValidationError on the first malformed field.

    Line business rules (variants, add-ons) are not checked here; they
    need the catalog and run inside the transaction.
    """
    if not request.items:
        raise ValidationError("items", "An order needs at least one item.")

    for index, line in enumerate(request.items):
        prefix = f"items[{index}]"
        if line.item_kind not in ItemKind.values:
            raise ValidationError(
                f"{prefix}.itemKind",
                f"itemKind must be one of {sorted(ItemKind.values)}.",
            )
        if not line.item_id:
            raise ValidationError(f"{prefix}.itemId", "itemId is required.")
        _positive_int(line.quantity, f"{prefix}.quantity")
        if line.unit_price_override is not None and not context.allow_price_override:
            raise ValidationError(f"{prefix}.unitPrice", "Unit price cannot be set by the caller.")

    if context.allowed_payment_methods:
        if request.payment_method not in context.allowed_payment_methods:
            raise ValidationError(
                "paymentMethod",
                f"paymentMethod must be one of {sorted(context.allowed_payment_methods)}.",
            )

    for field_name in context.required_customer_fields:
        if not request.customer.get(field_name):
            raise ValidationError(f"customer.{field_name}", f"customer.{field_name} is required.")
    if request.customer.email:
        try:
            validate_email(request.customer.email)
        except DjangoValidationError as exc:
            raise ValidationError("customer.email", "customer.email is not a valid email address.") from exc

    if not context.apply_pricing_extras:
        if request.applied_coupon_code:
            raise ValidationError("appliedCouponCode", "Coupons do not apply to this order type.")
        if request.delivery_zone_id:
            raise ValidationError("deliveryZoneId", "Delivery does not apply to this order type.")
