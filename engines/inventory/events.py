"""
Fulfillment Inventory — Event Types and Payload Builders
========================================================
Inventory builds payloads only; the order coordinator decides when
(after commit) they are dispatched.
"""

from __future__ import annotations

from datetime import datetime

from core.events import DomainEvent
from engines.inventory.ledger import ConsumptionResult


INVENTORY_MATERIAL_SHORTFALL_RECORDED_V1 = "inventory.material.shortfall_recorded.v1"

INVENTORY_EVENT_TYPES = (
    INVENTORY_MATERIAL_SHORTFALL_RECORDED_V1,
)


def build_shortfall_payload(result: ConsumptionResult, *, reference: str) -> dict:
    return {
        "material_id": str(result.material_id),
        "requested": str(result.requested),
        "applied": str(result.applied),
        "shortfall": str(result.shortfall),
        "stock_after": str(result.stock_after),
        "reference": reference,
    }


def shortfall_event(result: ConsumptionResult, *, reference: str, occurred_at: datetime) -> DomainEvent:
    return DomainEvent(
        event_type=INVENTORY_MATERIAL_SHORTFALL_RECORDED_V1,
        payload=build_shortfall_payload(result, reference=reference),
        occurred_at=occurred_at,
    )
