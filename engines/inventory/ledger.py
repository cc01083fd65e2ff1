"""
Fulfillment Inventory — Stock Ledger
====================================
Owns every stock counter mutation: raw material, product without
variants, and size-within-color-within-product.

RULES (NON-NEGOTIABLE):
- Sales decrement with ONE conditional UPDATE
  (`... SET stock = stock - q WHERE id = ? AND stock >= q`).
  Zero rows updated means the stock is gone: InsufficientStockError.
- After a size mutation the owning product's `stock` is recomputed
  as SUM(size.stock) under the product row lock.
- Add-on / bill-of-materials consumption floors at zero, but never
  silently: the shortfall is journaled and logged.
- Every mutation writes a StockMovement row in the same transaction.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Union

from django.db import transaction
from django.db.models import F, Sum

from core.errors import InsufficientStockError, NotFoundError
from engines.catalog.lookup import StockGranularity, StockLocator
from engines.catalog.models import Product, ProductSize, RawMaterial
from engines.inventory.models import MovementType, StockMovement

logger = logging.getLogger("fulfillment.inventory")

Quantity = Union[int, Decimal]


# ══════════════════════════════════════════════════════════════
# RESULT TYPES + PROTOCOL
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ConsumptionResult:
    material_id: uuid.UUID
    requested: Decimal
    applied: Decimal
    shortfall: Decimal
    stock_after: Decimal

    @property
    def has_shortfall(self) -> bool:
        return self.shortfall > 0


class StockLedger(Protocol):
    def decrement(self, locator: StockLocator, quantity: Quantity, *, reference: str = "") -> Quantity:
        ...

    def increment(
        self,
        locator: StockLocator,
        quantity: Quantity,
        *,
        reference: str = "",
        movement_type: str = MovementType.RECEIVE,
    ) -> Quantity:
        ...

    def consume_material(self, material_id: uuid.UUID, quantity: Quantity, *, reference: str = "") -> ConsumptionResult:
        ...


def _require_positive(quantity: Quantity) -> Quantity:
    if isinstance(quantity, bool) or not isinstance(quantity, (int, Decimal)):
        raise ValueError("quantity must be int or Decimal.")
    if quantity <= 0:
        raise ValueError("quantity must be > 0.")
    return quantity


def _log_shortfall(result: ConsumptionResult, reference: str) -> None:
    logger.warning(
        f"Raw material {result.material_id} floored at zero for {reference}: "
        f"requested {result.requested}, applied {result.applied}, "
        f"shortfall {result.shortfall}"
    )


# ══════════════════════════════════════════════════════════════
# DJANGO LEDGER
# ══════════════════════════════════════════════════════════════

_COUNTERS = {
    StockGranularity.MATERIAL: (RawMaterial, "stock_quantity"),
    StockGranularity.PRODUCT: (Product, "stock"),
    StockGranularity.SIZE: (ProductSize, "stock"),
}


class DjangoStockLedger:
    """Relational stock ledger. Each operation is its own atomic block (a savepoint inside an order)."""

    @staticmethod
    def _row_key(locator: StockLocator):
        if locator.granularity == StockGranularity.SIZE:
            return locator.size_id
        return locator.item_id

    def _current(self, locator: StockLocator) -> Quantity:
        model, column = _COUNTERS[locator.granularity]
        value = (
            model.objects.filter(pk=self._row_key(locator))
            .values_list(column, flat=True)
            .first()
        )
        if value is None:
            raise NotFoundError(locator.granularity, locator.describe())
        return value

    def _lock_parent_product(self, locator: StockLocator) -> None:
        if not list(Product.objects.select_for_update().filter(pk=locator.item_id).only("pk")):
            raise NotFoundError("product", locator.item_id)

    @staticmethod
    def recompute_product_stock(product_id: uuid.UUID) -> int:
        total = (
            ProductSize.objects.filter(color__product_id=product_id)
            .aggregate(total=Sum("stock"))["total"]
        ) or 0
        Product.objects.filter(pk=product_id).update(stock=total)
        return total

    @staticmethod
    def _journal(movement_type, locator, requested, applied, stock_after, reference, shortfall=0) -> None:
        StockMovement.objects.create(
            movement_type=movement_type,
            granularity=locator.granularity,
            item_id=locator.item_id,
            size_id=locator.size_id,
            quantity_requested=Decimal(requested),
            quantity_applied=Decimal(applied),
            shortfall=Decimal(shortfall),
            stock_after=Decimal(stock_after),
            reference=reference,
        )

    def decrement(self, locator: StockLocator, quantity: Quantity, *, reference: str = "") -> Quantity:
        quantity = _require_positive(quantity)
        model, column = _COUNTERS[locator.granularity]

        with transaction.atomic():
            if locator.granularity == StockGranularity.SIZE:
                self._lock_parent_product(locator)

            updated = model.objects.filter(
                pk=self._row_key(locator),
                **{f"{column}__gte": quantity},
            ).update(**{column: F(column) - quantity})
            if not updated:
                raise InsufficientStockError(
                    locator.describe(), quantity, self._current(locator)
                )

            stock_after = self._current(locator)
            if locator.granularity == StockGranularity.SIZE:
                self.recompute_product_stock(locator.item_id)
            self._journal(MovementType.ISSUE, locator, quantity, quantity, stock_after, reference)

        return stock_after

    def increment(
        self,
        locator: StockLocator,
        quantity: Quantity,
        *,
        reference: str = "",
        movement_type: str = MovementType.RECEIVE,
    ) -> Quantity:
        quantity = _require_positive(quantity)
        model, column = _COUNTERS[locator.granularity]

        with transaction.atomic():
            if locator.granularity == StockGranularity.SIZE:
                self._lock_parent_product(locator)

            updated = model.objects.filter(pk=self._row_key(locator)).update(
                **{column: F(column) + quantity}
            )
            if not updated:
                raise NotFoundError(locator.granularity, locator.describe())

            stock_after = self._current(locator)
            if locator.granularity == StockGranularity.SIZE:
                self.recompute_product_stock(locator.item_id)
            self._journal(movement_type, locator, quantity, quantity, stock_after, reference)

        return stock_after

    def consume_material(
        self,
        material_id: uuid.UUID,
        quantity: Quantity,
        *,
        reference: str = "",
    ) -> ConsumptionResult:
        requested = Decimal(_require_positive(quantity))

        with transaction.atomic():
            material = RawMaterial.objects.select_for_update().filter(pk=material_id).first()
            if material is None:
                raise NotFoundError("raw material", material_id)

            applied = min(material.stock_quantity, requested)
            if applied > 0:
                RawMaterial.objects.filter(pk=material_id).update(
                    stock_quantity=F("stock_quantity") - applied
                )
            result = ConsumptionResult(
                material_id=material.material_id,
                requested=requested,
                applied=applied,
                shortfall=requested - applied,
                stock_after=material.stock_quantity - applied,
            )
            self._journal(
                MovementType.CONSUME,
                StockLocator(
                    granularity=StockGranularity.MATERIAL,
                    item_id=material.material_id,
                    label=material.name,
                ),
                requested,
                applied,
                result.stock_after,
                reference,
                shortfall=result.shortfall,
            )

        if result.has_shortfall:
            _log_shortfall(result, reference)
        return result


# ══════════════════════════════════════════════════════════════
# IN-MEMORY LEDGER (tests, dry runs)
# ══════════════════════════════════════════════════════════════

class InMemoryStockLedger:
    """
    Same contract as DjangoStockLedger over plain dicts.

    Size counters are registered with their parent product so the
    aggregate rule can be applied after every size mutation.
    """

    def __init__(self):
        self._stock: dict[tuple, Quantity] = {}
        self._size_parent: dict[uuid.UUID, uuid.UUID] = {}
        self._lock = threading.Lock()
        self.movements: list[dict] = []

    @staticmethod
    def _key(locator: StockLocator) -> tuple:
        if locator.granularity == StockGranularity.SIZE:
            return (StockGranularity.SIZE, locator.size_id)
        return (locator.granularity, locator.item_id)

    def set_stock(self, locator: StockLocator, quantity: Quantity) -> None:
        with self._lock:
            self._stock[self._key(locator)] = quantity
            if locator.granularity == StockGranularity.SIZE:
                self._size_parent[locator.size_id] = locator.item_id
                self._recompute(locator.item_id)

    def stock_of(self, locator: StockLocator) -> Quantity:
        with self._lock:
            key = self._key(locator)
            if key not in self._stock:
                raise NotFoundError(locator.granularity, locator.describe())
            return self._stock[key]

    def product_stock(self, product_id: uuid.UUID) -> Quantity:
        with self._lock:
            return self._stock.get((StockGranularity.PRODUCT, product_id), 0)

    def _recompute(self, product_id: uuid.UUID) -> None:
        self._stock[(StockGranularity.PRODUCT, product_id)] = sum(
            self._stock[(StockGranularity.SIZE, size_id)]
            for size_id, parent in self._size_parent.items()
            if parent == product_id
        )

    def _apply(self, movement_type, locator, delta, requested, reference, shortfall=0):
        key = self._key(locator)
        self._stock[key] = self._stock[key] + delta
        if locator.granularity == StockGranularity.SIZE:
            self._recompute(locator.item_id)
        self.movements.append(
            {
                "movement_type": str(movement_type),
                "key": key,
                "requested": requested,
                "applied": abs(delta),
                "shortfall": shortfall,
                "stock_after": self._stock[key],
                "reference": reference,
            }
        )
        return self._stock[key]

    def decrement(self, locator, quantity, *, reference=""):
        quantity = _require_positive(quantity)
        with self._lock:
            key = self._key(locator)
            if key not in self._stock:
                raise NotFoundError(locator.granularity, locator.describe())
            if self._stock[key] < quantity:
                raise InsufficientStockError(locator.describe(), quantity, self._stock[key])
            return self._apply(MovementType.ISSUE, locator, -quantity, quantity, reference)

    def increment(self, locator, quantity, *, reference="", movement_type=MovementType.RECEIVE):
        quantity = _require_positive(quantity)
        with self._lock:
            if self._key(locator) not in self._stock:
                raise NotFoundError(locator.granularity, locator.describe())
            return self._apply(movement_type, locator, quantity, quantity, reference)

    def consume_material(self, material_id, quantity, *, reference=""):
        requested = Decimal(_require_positive(quantity))
        locator = StockLocator(granularity=StockGranularity.MATERIAL, item_id=material_id)
        with self._lock:
            key = self._key(locator)
            if key not in self._stock:
                raise NotFoundError("raw material", material_id)
            current = Decimal(self._stock[key])
            applied = min(current, requested)
            self._stock[key] = current
            stock_after = self._apply(
                MovementType.CONSUME, locator, -applied, requested, reference,
                shortfall=requested - applied,
            )
        result = ConsumptionResult(
            material_id=material_id,
            requested=requested,
            applied=applied,
            shortfall=requested - applied,
            stock_after=stock_after,
        )
        if result.has_shortfall:
            _log_shortfall(result, reference)
        return result
