"""
Fulfillment Orders — Order Transaction Coordinator
==================================================
Turns one OrderRequest into a committed Order, or into nothing.

State machine (one CoordinatorRun per submit):

    VALIDATING → PRICING → PERSISTING → MUTATING_STOCK → COMMITTED
         └──────────┴───────────┴──────────────┴──────→ ABORTED

RULES (NON-NEGOTIABLE):
- Request-shape validation and the permission gate run before the
  transaction opens.
- VALIDATING through MUTATING_STOCK is ONE transaction.atomic().
  Any exception rolls back the order header, its items, every stock
  mutation and the coupon redemption together.
- Prices are read once, under row locks, in VALIDATING. Pricing runs
  exactly once on that snapshot.
- Events are handed to transaction.on_commit. An aborted order never
  notifies or audits anything.
- Storage errors surface as TransactionFailure (retryable). The
  coordinator itself never retries.
- Rows are locked in one order regardless of cart order: catalog rows
  by request key while validating, stock counters by locator and raw
  materials by id while mutating.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from django.db import DatabaseError, transaction

from core.commands.rejection import first_rejection
from core.errors import (
    FulfillmentError,
    InsufficientStockError,
    InvalidItemError,
    TransactionFailure,
)
from core.events import SubscriberRegistry, dispatch_on_commit
from core.identity import require_permission
from core.time import Clock
from engines.catalog.lookup import (
    CatalogLookup,
    ConsumptionRule,
    ResolvedItem,
    StockGranularity,
    StockLocator,
)
from engines.catalog.models import ItemKind
from engines.fulfillment.commands import OrderLine, OrderRequest, validate_order_request
from engines.fulfillment.context import OrderContext
from engines.fulfillment.events import order_committed_event
from engines.fulfillment.ids import OrderIdProvider
from engines.fulfillment.models import Order, OrderItem
from engines.fulfillment.policies import (
    LINE_CATALOG_POLICIES,
    LINE_SHAPE_POLICIES,
    RECEIPT_CATALOG_POLICIES,
)
from engines.inventory.events import shortfall_event
from engines.inventory.ledger import ConsumptionResult, StockLedger
from engines.pricing.pipeline import PriceBreakdown, PricingLine, price_order
from engines.pricing.taxes import TaxTable
from engines.pricing.zones import ZoneChargeTable
from engines.promotion.services import CouponBook

logger = logging.getLogger("fulfillment.orders")


# ══════════════════════════════════════════════════════════════
# RUN STATE
# ══════════════════════════════════════════════════════════════

class CoordinatorState(Enum):
    VALIDATING = "VALIDATING"
    PRICING = "PRICING"
    PERSISTING = "PERSISTING"
    MUTATING_STOCK = "MUTATING_STOCK"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"


_NEXT_STATE = {
    CoordinatorState.VALIDATING: CoordinatorState.PRICING,
    CoordinatorState.PRICING: CoordinatorState.PERSISTING,
    CoordinatorState.PERSISTING: CoordinatorState.MUTATING_STOCK,
    CoordinatorState.MUTATING_STOCK: CoordinatorState.COMMITTED,
}

TERMINAL_STATES = frozenset({CoordinatorState.COMMITTED, CoordinatorState.ABORTED})


class CoordinatorRun:
    """Tracks and logs the state of one submit() call."""

    def __init__(self, source: str):
        self.source = source
        self.order_id: Optional[str] = None
        self.state = CoordinatorState.VALIDATING
        self.history = [CoordinatorState.VALIDATING]
        self.error: Optional[FulfillmentError] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, state: CoordinatorState) -> None:
        if _NEXT_STATE.get(self.state) is not state:
            raise RuntimeError(f"Illegal transition {self.state.value} → {state.value}.")
        logger.debug(f"[{self.source}] {self.order_id or '-'}: {self.state.value} → {state.value}")
        self.state = state
        self.history.append(state)

    def abort(self, error: FulfillmentError) -> None:
        if self.is_terminal:
            raise RuntimeError(f"Run already ended in {self.state.value}.")
        logger.warning(
            f"[{self.source}] order aborted in {self.state.value}: {error.code} {error.message}"
        )
        self.state = CoordinatorState.ABORTED
        self.history.append(CoordinatorState.ABORTED)
        self.error = error


# ══════════════════════════════════════════════════════════════
# VALUE TYPES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ValidatedLine:
    index: int
    line: OrderLine
    item: ResolvedItem
    unit_price: Decimal
    addons: tuple[ConsumptionRule, ...] = ()
    bill_of_materials: tuple[ConsumptionRule, ...] = ()

    @property
    def line_no(self) -> int:
        return self.index + 1

    def pricing_line(self) -> PricingLine:
        return PricingLine(
            line_no=self.line_no,
            category=self.item.category,
            unit_price=self.unit_price,
            quantity=self.line.quantity,
            addon_prices=tuple(addon.price for addon in self.addons),
        )

    def consumption(self) -> tuple[ConsumptionRule, ...]:
        return tuple(
            rule for rule in self.addons + self.bill_of_materials
            if rule.quantity_per_unit > 0
        )


@dataclass(frozen=True)
class OrderResult:
    order_id: str
    source: str
    status: str
    breakdown: PriceBreakdown
    shortfalls: tuple[ConsumptionResult, ...] = field(default_factory=tuple)

    @property
    def total(self) -> Decimal:
        return self.breakdown.total

    def to_dict(self) -> dict:
        data = {"orderId": self.order_id, "status": self.status}
        data.update(self.breakdown.to_dict())
        data["couponApplied"] = self.breakdown.coupon_applied
        return data


# ══════════════════════════════════════════════════════════════
# LOCK ORDER
# ══════════════════════════════════════════════════════════════

def request_lock_key(line: OrderLine) -> tuple[str, str, str, str]:
    return (line.item_kind, str(line.item_id), str(line.color_id or ""), line.size or "")


def locator_lock_key(locator: StockLocator) -> tuple[str, str, str]:
    return (locator.granularity, str(locator.item_id), str(locator.size_id or ""))


def material_demand(lines) -> dict[uuid.UUID, Decimal]:
    """Raw material quantity the whole order consumes, summed per material."""
    demand: dict[uuid.UUID, Decimal] = {}
    for line in lines:
        for rule in line.consumption():
            needed = rule.quantity_per_unit * line.line.quantity
            demand[rule.material_id] = demand.get(rule.material_id, Decimal("0")) + needed
    return demand


# ══════════════════════════════════════════════════════════════
# COORDINATOR
# ══════════════════════════════════════════════════════════════

class OrderTransactionCoordinator:
    def __init__(
        self,
        *,
        catalog: CatalogLookup,
        ledger: StockLedger,
        coupons: CouponBook,
        taxes: TaxTable,
        zones: ZoneChargeTable,
        id_provider: OrderIdProvider,
        clock: Clock,
        subscriber_registry: SubscriberRegistry,
    ):
        self._catalog = catalog
        self._ledger = ledger
        self._coupons = coupons
        self._taxes = taxes
        self._zones = zones
        self._ids = id_provider
        self._clock = clock
        self._registry = subscriber_registry

    def submit(self, request: OrderRequest, context: OrderContext) -> OrderResult:
        run = CoordinatorRun(context.source)
        try:
            require_permission(context.principal, context.required_permission)
            validate_order_request(request, context)

            with transaction.atomic():
                lines = self._validate_lines(request, context)

                run.advance(CoordinatorState.PRICING)
                breakdown = self._price(request, context, lines)

                run.advance(CoordinatorState.PERSISTING)
                order, items = self._persist(request, context, lines, breakdown)
                run.order_id = order.order_id

                run.advance(CoordinatorState.MUTATING_STOCK)
                shortfalls = self._mutate_stock(order, context, lines, breakdown)

                dispatch_on_commit(
                    self._events(order, items, context, shortfalls),
                    self._registry,
                )
        except FulfillmentError as exc:
            run.abort(exc)
            raise
        except DatabaseError as exc:
            failure = TransactionFailure(run.state.value.lower(), exc)
            run.abort(failure)
            raise failure from exc

        run.advance(CoordinatorState.COMMITTED)
        logger.info(
            f"[{context.source}] order {order.order_id} committed: "
            f"{len(lines)} line(s), total {breakdown.total}, status {order.status}"
        )
        return OrderResult(
            order_id=order.order_id,
            source=context.source,
            status=order.status,
            breakdown=breakdown,
            shortfalls=tuple(shortfalls),
        )

    # ── VALIDATING ────────────────────────────────────────────

    def _validate_lines(self, request: OrderRequest, context: OrderContext) -> list[ValidatedLine]:
        catalog_policies = LINE_CATALOG_POLICIES if context.is_sale else RECEIPT_CATALOG_POLICIES
        validated = []

        for index, line in enumerate(request.items):
            rejection = first_rejection(LINE_SHAPE_POLICIES, line)
            if rejection is not None:
                raise InvalidItemError.from_rejection(rejection, line_no=index)

        for index, line in sorted(enumerate(request.items), key=lambda pair: request_lock_key(pair[1])):
            item = self._catalog.resolve(
                line.item_kind,
                line.item_id,
                line.color_id,
                line.size,
                lock=True,
            )

            addon_rules = {}
            if line.addons and item.item_kind == ItemKind.PRODUCT:
                addon_rules = self._catalog.addon_rules(item.item_id)

            rejection = first_rejection(catalog_policies, line, item=item, addon_rules=addon_rules)
            if rejection is not None:
                raise InvalidItemError.from_rejection(rejection, line_no=index)

            if context.is_sale and line.quantity > item.available_stock:
                raise InsufficientStockError(
                    item.locator.describe(), line.quantity, item.available_stock
                )

            bill_of_materials = ()
            if context.consume_materials and item.locator.granularity == StockGranularity.SIZE:
                bill_of_materials = self._catalog.color_bill_of_materials(item.color_id)

            validated.append(
                ValidatedLine(
                    index=index,
                    line=line,
                    item=item,
                    unit_price=(
                        line.unit_price_override
                        if context.allow_price_override and line.unit_price_override is not None
                        else item.unit_price
                    ),
                    addons=tuple(addon_rules[uuid.UUID(str(addon_id))] for addon_id in line.addons),
                    bill_of_materials=tuple(bill_of_materials),
                )
            )

        validated.sort(key=lambda validated_line: validated_line.index)
        return validated

    # ── PRICING ───────────────────────────────────────────────

    def _price(self, request, context, lines) -> PriceBreakdown:
        pricing_lines = [line.pricing_line() for line in lines]
        now = self._clock.now_utc()

        if not context.apply_pricing_extras:
            return price_order(pricing_lines, now=now)

        coupon = None
        if request.applied_coupon_code:
            coupon = self._coupons.find(request.applied_coupon_code)
            if coupon is None:
                logger.info(f"Unknown coupon '{request.applied_coupon_code}' ignored")

        return price_order(
            pricing_lines,
            coupon=coupon,
            delivery_charge=self._zones.charge_for(request.delivery_zone_id),
            taxes=self._taxes.active_rules(),
            now=now,
        )

    # ── PERSISTING ────────────────────────────────────────────

    def _persist(self, request, context, lines, breakdown):
        customer = request.customer
        order = Order.objects.create(
            order_id=self._ids.new_id(context.source),
            source=context.source,
            status=context.status_for(request.payment_method),
            customer_name=customer.name or context.default_customer_name,
            customer_phone=customer.phone,
            customer_email=customer.email,
            customer_address=customer.address,
            payment_method=request.payment_method,
            delivery_zone=request.delivery_zone_id or "",
            applied_coupon=breakdown.coupon.code if breakdown.coupon_applied else "",
            notes=request.notes,
            header=dict(request.header),
            created_by=context.principal.actor_id,
            subtotal=breakdown.subtotal,
            category_tax_total=breakdown.category_tax_total,
            full_bill_tax_total=breakdown.full_bill_tax_total,
            discount=breakdown.discount,
            delivery_charge=breakdown.delivery_charge,
            total=breakdown.total,
            applied_taxes=[tax.to_dict() for tax in breakdown.applied_taxes],
            created_at=self._clock.now_utc(),
        )

        items = [
            OrderItem(
                order=order,
                line_no=line.line_no,
                item_kind=line.item.item_kind,
                item_id=line.item.item_id,
                color_id=line.item.color_id,
                size_id=line.item.locator.size_id,
                size_name=line.item.size_name,
                name=line.item.name,
                category=line.item.category,
                quantity=line.line.quantity,
                unit_price=line.unit_price,
                addons=[
                    {
                        "materialId": str(addon.material_id),
                        "name": addon.name,
                        "price": str(addon.price),
                        "quantityPerUnit": str(addon.quantity_per_unit),
                    }
                    for addon in line.addons
                ],
                line_total=line.pricing_line().line_total,
            )
            for line in lines
        ]
        OrderItem.objects.bulk_create(items)
        return order, items

    # ── MUTATING_STOCK ────────────────────────────────────────

    def _mutate_stock(self, order, context, lines, breakdown) -> list[ConsumptionResult]:
        shortfalls = []
        for line in sorted(lines, key=lambda line: locator_lock_key(line.item.locator)):
            if context.is_sale:
                self._ledger.decrement(line.item.locator, line.line.quantity, reference=order.order_id)
            else:
                self._ledger.increment(line.item.locator, line.line.quantity, reference=order.order_id)

        if context.is_sale:
            demand = material_demand(lines)
            for material_id in sorted(demand, key=str):
                result = self._ledger.consume_material(
                    material_id, demand[material_id], reference=order.order_id
                )
                if result.has_shortfall:
                    shortfalls.append(result)

        if breakdown.coupon_applied:
            self._coupons.redeem(breakdown.coupon)
        return shortfalls

    # ── COMMITTED (post-commit events) ────────────────────────

    def _events(self, order, items, context, shortfalls):
        now = self._clock.now_utc()
        events = [
            order_committed_event(
                order,
                items,
                actor_id=context.principal.actor_id,
                audit_module=context.audit_module,
                notify=context.notify,
                occurred_at=now,
            )
        ]
        events.extend(
            shortfall_event(result, reference=order.order_id, occurred_at=now)
            for result in shortfalls
        )
        return events
