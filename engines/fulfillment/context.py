"""
Fulfillment Orders — Order Context
==================================
Everything that differs between a POS sale, an e-commerce order and a
goods-received note, gathered in one frozen value. The coordinator
has a single code path; the context decides permissions, stock
direction, pricing extras and the initial status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from django.conf import settings

from core.identity import (
    PERMISSION_ECOMMERCE_ORDER,
    PERMISSION_GOODS_RECEIVE,
    PERMISSION_POS_SELL,
    Principal,
)
from engines.fulfillment.models import OrderSource, OrderStatus


class StockDirection:
    ISSUE = "ISSUE"
    RECEIVE = "RECEIVE"


@dataclass(frozen=True)
class OrderContext:
    source: str
    principal: Principal
    required_permission: str
    initial_status: str
    stock_direction: str = StockDirection.ISSUE
    apply_pricing_extras: bool = True
    allow_price_override: bool = False
    consume_materials: bool = True
    allowed_payment_methods: frozenset[str] = field(default_factory=frozenset)
    required_customer_fields: tuple[str, ...] = ()
    default_customer_name: str = ""
    status_by_payment_method: Mapping[str, str] = field(default_factory=dict)
    notify: bool = False
    audit_module: str = "orders"

    def __post_init__(self):
        if self.source not in OrderSource.values:
            raise ValueError(f"source must be one of {OrderSource.values}.")
        if self.stock_direction not in (StockDirection.ISSUE, StockDirection.RECEIVE):
            raise ValueError("stock_direction must be ISSUE or RECEIVE.")
        object.__setattr__(self, "allowed_payment_methods", frozenset(self.allowed_payment_methods))
        object.__setattr__(self, "status_by_payment_method", dict(self.status_by_payment_method))

    @property
    def is_sale(self) -> bool:
        return self.stock_direction == StockDirection.ISSUE

    def status_for(self, payment_method: str) -> str:
        return self.status_by_payment_method.get(payment_method, self.initial_status)


def _configured(key: str, override: Optional[Iterable[str]]) -> frozenset[str]:
    if override is not None:
        return frozenset(override)
    return frozenset(settings.FULFILLMENT.get(key, ()))


def pos_context(principal: Principal, *, payment_methods: Optional[Iterable[str]] = None) -> OrderContext:
    return OrderContext(
        source=OrderSource.POS,
        principal=principal,
        required_permission=PERMISSION_POS_SELL,
        initial_status=OrderStatus.COMPLETED,
        allowed_payment_methods=_configured("POS_PAYMENT_METHODS", payment_methods),
        default_customer_name="Walk-in Customer",
        notify=True,
        audit_module="pos",
    )


def ecommerce_context(principal: Principal, *, payment_methods: Optional[Iterable[str]] = None) -> OrderContext:
    # Cash on delivery ships straight away; bank transfers wait for the money.
    return OrderContext(
        source=OrderSource.ECOMMERCE,
        principal=principal,
        required_permission=PERMISSION_ECOMMERCE_ORDER,
        initial_status=OrderStatus.PENDING_PAYMENT,
        allowed_payment_methods=_configured("ECOMMERCE_PAYMENT_METHODS", payment_methods),
        required_customer_fields=("name", "phone", "email", "address"),
        status_by_payment_method={"cash_on_delivery": OrderStatus.PROCESSING},
        notify=True,
        audit_module="ecommerce",
    )


def purchase_receipt_context(principal: Principal) -> OrderContext:
    return OrderContext(
        source=OrderSource.PURCHASE_RECEIPT,
        principal=principal,
        required_permission=PERMISSION_GOODS_RECEIVE,
        initial_status=OrderStatus.RECEIVED,
        stock_direction=StockDirection.RECEIVE,
        apply_pricing_extras=False,
        allow_price_override=True,
        consume_materials=False,
        audit_module="purchasing",
    )
