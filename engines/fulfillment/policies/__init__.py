"""
Fulfillment Orders — Line Policies
==================================
Business rules for a single order line. Each policy returns None
(pass) or a RejectionReason; the coordinator turns the first
rejection into an InvalidItemError naming the line and field.

All policies share one signature:
    policy(line, *, item=None, addon_rules=None)

`item` is the ResolvedItem (None before resolution) and `addon_rules`
the product's attached add-ons keyed by raw material id.
"""

from __future__ import annotations

import uuid
from typing import Mapping, Optional

from core.commands.rejection import ReasonCode, RejectionReason
from engines.catalog.lookup import ConsumptionRule, ResolvedItem, StockGranularity
from engines.catalog.models import ItemKind
from engines.fulfillment.commands import OrderLine


# ══════════════════════════════════════════════════════════════
# BEFORE RESOLUTION
# ══════════════════════════════════════════════════════════════

def material_has_no_variant_policy(
    line: OrderLine,
    *,
    item: Optional[ResolvedItem] = None,
    addon_rules: Optional[Mapping] = None,
) -> Optional[RejectionReason]:
    if line.item_kind != ItemKind.MATERIAL or not line.has_variant_selection:
        return None
    return RejectionReason(
        code=ReasonCode.MATERIAL_WITH_VARIANT,
        message="Raw materials cannot have a color or size.",
        policy_name="material_has_no_variant_policy",
        field="colorId" if line.color_id is not None else "size",
    )


def material_has_no_addons_policy(
    line: OrderLine,
    *,
    item: Optional[ResolvedItem] = None,
    addon_rules: Optional[Mapping] = None,
) -> Optional[RejectionReason]:
    if line.item_kind != ItemKind.MATERIAL or not line.addons:
        return None
    return RejectionReason(
        code=ReasonCode.MATERIAL_WITH_ADDONS,
        message="Raw materials cannot have add-ons.",
        policy_name="material_has_no_addons_policy",
        field="addons",
    )


def variant_selection_complete_policy(
    line: OrderLine,
    *,
    item: Optional[ResolvedItem] = None,
    addon_rules: Optional[Mapping] = None,
) -> Optional[RejectionReason]:
    if line.item_kind != ItemKind.PRODUCT:
        return None
    if (line.color_id is None) == (not line.size):
        return None
    return RejectionReason(
        code=ReasonCode.INCOMPLETE_VARIANT,
        message="Color and size must be selected together.",
        policy_name="variant_selection_complete_policy",
        field="size" if line.color_id is not None else "colorId",
    )


# ══════════════════════════════════════════════════════════════
# AFTER RESOLUTION
# ══════════════════════════════════════════════════════════════

def product_must_be_active_policy(
    line: OrderLine,
    *,
    item: Optional[ResolvedItem] = None,
    addon_rules: Optional[Mapping] = None,
) -> Optional[RejectionReason]:
    if item is None or item.is_active:
        return None
    return RejectionReason(
        code=ReasonCode.INACTIVE_PRODUCT,
        message=f"Product '{item.name}' is not available for sale.",
        policy_name="product_must_be_active_policy",
        field="itemId",
    )


def variant_required_policy(
    line: OrderLine,
    *,
    item: Optional[ResolvedItem] = None,
    addon_rules: Optional[Mapping] = None,
) -> Optional[RejectionReason]:
    """A product stocked per size must be sold per size."""
    if item is None or item.item_kind != ItemKind.PRODUCT:
        return None
    if not item.has_variants or item.locator.granularity == StockGranularity.SIZE:
        return None
    return RejectionReason(
        code=ReasonCode.VARIANT_REQUIRED,
        message=f"Product '{item.name}' requires a color and size selection.",
        policy_name="variant_required_policy",
        field="colorId",
    )


def _as_uuid(value) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def addons_must_be_attached_policy(
    line: OrderLine,
    *,
    item: Optional[ResolvedItem] = None,
    addon_rules: Optional[Mapping[uuid.UUID, ConsumptionRule]] = None,
) -> Optional[RejectionReason]:
    if item is None or not line.addons:
        return None
    rules = addon_rules or {}
    seen = set()
    for addon_id in line.addons:
        material_id = _as_uuid(addon_id)
        if material_id is None or material_id not in rules:
            return RejectionReason(
                code=ReasonCode.ADDON_NOT_ATTACHED,
                message=f"Add-on '{addon_id}' is not available for '{item.name}'.",
                policy_name="addons_must_be_attached_policy",
                field="addons",
            )
        if material_id in seen:
            return RejectionReason(
                code=ReasonCode.DUPLICATE_ADDON,
                message=f"Add-on '{addon_id}' is selected more than once.",
                policy_name="addons_must_be_attached_policy",
                field="addons",
            )
        seen.add(material_id)
    return None


LINE_SHAPE_POLICIES = (
    material_has_no_variant_policy,
    material_has_no_addons_policy,
    variant_selection_complete_policy,
)

LINE_CATALOG_POLICIES = (
    product_must_be_active_policy,
    variant_required_policy,
    addons_must_be_attached_policy,
)

# Goods can be received for a product that is not on sale.
RECEIPT_CATALOG_POLICIES = (
    variant_required_policy,
    addons_must_be_attached_policy,
)
