"""
Fulfillment Catalog — Lookup
============================
Resolves (item kind, item id, color?, size?) to current attributes
and the exact stock counter a line draws from.

Read-only. `lock=True` takes row locks (SELECT ... FOR UPDATE) and
is only meaningful inside the order transaction; parent product is
always locked before its size row.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Protocol, Union

from core.errors import InvalidItemError, NotFoundError, ValidationError
from engines.catalog.models import (
    ColorMaterial,
    ItemKind,
    Product,
    ProductAddon,
    ProductColor,
    ProductSize,
    RawMaterial,
)


# ══════════════════════════════════════════════════════════════
# VALUE TYPES
# ══════════════════════════════════════════════════════════════

class StockGranularity:
    MATERIAL = "material"
    PRODUCT = "product"
    SIZE = "size"


@dataclass(frozen=True)
class StockLocator:
    """Address of one stock counter."""

    granularity: str
    item_id: uuid.UUID
    size_id: Optional[uuid.UUID] = None
    label: str = field(default="", compare=False)

    def __post_init__(self):
        if self.granularity not in (
            StockGranularity.MATERIAL,
            StockGranularity.PRODUCT,
            StockGranularity.SIZE,
        ):
            raise ValueError(f"Unknown stock granularity '{self.granularity}'.")
        if (self.granularity == StockGranularity.SIZE) != (self.size_id is not None):
            raise ValueError("size_id is required for, and only for, size locators.")

    def describe(self) -> str:
        return self.label or str(self.size_id or self.item_id)


@dataclass(frozen=True)
class ResolvedItem:
    item_kind: str
    item_id: uuid.UUID
    name: str
    unit_price: Decimal
    category: str
    unit: str
    available_stock: Union[int, Decimal]
    locator: StockLocator
    has_variants: bool = False
    is_active: bool = True
    color_id: Optional[uuid.UUID] = None
    size_name: str = ""


@dataclass(frozen=True)
class ConsumptionRule:
    """Raw material drawn per unit sold (add-on or color bill of materials)."""

    material_id: uuid.UUID
    name: str
    quantity_per_unit: Decimal
    price: Decimal = Decimal("0.00")


class CatalogLookup(Protocol):
    def resolve(self, item_kind, item_id, color_id=None, size_name=None, *, lock=False) -> ResolvedItem:
        ...

    def addon_rules(self, product_id: uuid.UUID) -> dict[uuid.UUID, ConsumptionRule]:
        ...

    def color_bill_of_materials(self, color_id: uuid.UUID) -> tuple[ConsumptionRule, ...]:
        ...


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════

def _coerce_uuid(value, *, kind: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (ValueError, AttributeError, TypeError) as exc:
        raise NotFoundError(kind, value) from exc


def _locked(queryset, lock: bool):
    return queryset.select_for_update() if lock else queryset


# ══════════════════════════════════════════════════════════════
# DJANGO IMPLEMENTATION
# ══════════════════════════════════════════════════════════════

class DjangoCatalogLookup:
    """Catalog lookup over the catalog tables."""

    def resolve(
        self,
        item_kind: str,
        item_id,
        color_id=None,
        size_name: Optional[str] = None,
        *,
        lock: bool = False,
    ) -> ResolvedItem:
        if item_kind == ItemKind.MATERIAL:
            return self._resolve_material(item_id, lock=lock)
        if item_kind == ItemKind.PRODUCT:
            return self._resolve_product(item_id, color_id, size_name, lock=lock)
        raise ValidationError("itemKind", f"Unknown item kind '{item_kind}'.")

    def _resolve_material(self, item_id, *, lock: bool) -> ResolvedItem:
        material_id = _coerce_uuid(item_id, kind="raw material")
        material = _locked(RawMaterial.objects, lock).filter(pk=material_id).first()
        if material is None:
            raise NotFoundError("raw material", item_id)
        return ResolvedItem(
            item_kind=ItemKind.MATERIAL,
            item_id=material.material_id,
            name=material.name,
            unit_price=material.unit_price,
            category=material.category,
            unit=material.unit,
            available_stock=material.stock_quantity,
            locator=StockLocator(
                granularity=StockGranularity.MATERIAL,
                item_id=material.material_id,
                label=material.name,
            ),
        )

    def _resolve_product(self, item_id, color_id, size_name, *, lock: bool) -> ResolvedItem:
        product_id = _coerce_uuid(item_id, kind="product")
        product = _locked(Product.objects, lock).filter(pk=product_id).first()
        if product is None:
            raise NotFoundError("product", item_id)

        if (color_id is None) != (not size_name):
            missing = "size" if color_id is not None else "colorId"
            raise InvalidItemError(missing, "color and size must be selected together.")

        if color_id is None:
            return ResolvedItem(
                item_kind=ItemKind.PRODUCT,
                item_id=product.product_id,
                name=product.name,
                unit_price=product.price,
                category=product.category,
                unit=product.unit,
                available_stock=product.stock,
                locator=StockLocator(
                    granularity=StockGranularity.PRODUCT,
                    item_id=product.product_id,
                    label=product.name,
                ),
                has_variants=ProductSize.objects.filter(color__product=product).exists(),
                is_active=product.is_active,
            )

        color = ProductColor.objects.filter(
            pk=_coerce_uuid(color_id, kind="color"),
            product=product,
        ).first()
        if color is None:
            raise NotFoundError("color", color_id)

        size = _locked(ProductSize.objects, lock).filter(color=color, name=size_name).first()
        if size is None:
            raise NotFoundError("size", f"{product.name} - {color.name} / {size_name}")

        return ResolvedItem(
            item_kind=ItemKind.PRODUCT,
            item_id=product.product_id,
            name=product.name,
            unit_price=product.price,
            category=product.category,
            unit=product.unit,
            available_stock=size.stock,
            locator=StockLocator(
                granularity=StockGranularity.SIZE,
                item_id=product.product_id,
                size_id=size.size_id,
                label=f"{product.name} - {color.name} / {size.name}",
            ),
            has_variants=True,
            is_active=product.is_active,
            color_id=color.color_id,
            size_name=size.name,
        )

    def addon_rules(self, product_id: uuid.UUID) -> dict[uuid.UUID, ConsumptionRule]:
        rules = ProductAddon.objects.filter(product_id=product_id).select_related("raw_material")
        return {
            rule.raw_material_id: ConsumptionRule(
                material_id=rule.raw_material_id,
                name=rule.raw_material.name,
                quantity_per_unit=rule.quantity,
                price=rule.price,
            )
            for rule in rules
        }

    def color_bill_of_materials(self, color_id: uuid.UUID) -> tuple[ConsumptionRule, ...]:
        rules = (
            ColorMaterial.objects.filter(color_id=color_id)
            .select_related("raw_material")
            .order_by("raw_material__name")
        )
        return tuple(
            ConsumptionRule(
                material_id=rule.raw_material_id,
                name=rule.raw_material.name,
                quantity_per_unit=rule.quantity,
            )
            for rule in rules
        )
