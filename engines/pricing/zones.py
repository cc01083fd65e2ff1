"""
Fulfillment Pricing — Zone Charge Table
=======================================
Flat delivery charge per zone id. Not computed, only looked up.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Optional, Protocol

from django.conf import settings

from core.errors import NotFoundError
from core.primitives import ZERO, to_money


class ZoneChargeTable(Protocol):
    def charge_for(self, zone_id: Optional[str]) -> Decimal:
        ...


class SettingsZoneChargeTable:
    """Reads FULFILLMENT["DELIVERY_ZONES"] unless a mapping is given."""

    def __init__(self, zones: Mapping[str, object] | None = None):
        if zones is None:
            zones = settings.FULFILLMENT.get("DELIVERY_ZONES", {})
        self._zones = {str(zone_id): to_money(str(charge)) for zone_id, charge in zones.items()}

    def charge_for(self, zone_id: Optional[str]) -> Decimal:
        if not zone_id:
            return ZERO
        if zone_id not in self._zones:
            raise NotFoundError("delivery zone", zone_id)
        return self._zones[zone_id]

    def zone_ids(self) -> tuple[str, ...]:
        return tuple(sorted(self._zones))
