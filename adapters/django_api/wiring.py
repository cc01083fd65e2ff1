"""
Fulfillment Django Adapter Wiring
=================================
Builds the collaborators the HTTP views need, once per process.

Adapter-only glue: every engine collaborator is injected here and
nowhere else. Tests build their own graphs instead of going through
this singleton, or call reset_dependencies() between runs.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from django.conf import settings

from core.audit import LoggingAuditLogger
from core.identity import InMemoryPrincipalProvider, PrincipalProvider
from core.time import Clock, SystemClock
from engines.catalog.lookup import DjangoCatalogLookup
from engines.fulfillment.coordinator import OrderTransactionCoordinator
from engines.fulfillment.ids import PrefixedUuidOrderIdProvider
from engines.fulfillment.notifications import EmailNotificationDispatcher
from engines.fulfillment.services import OrderService, PurchasingService
from engines.fulfillment.subscriptions import build_subscriber_registry
from engines.inventory.ledger import DjangoStockLedger
from engines.pricing.taxes import DjangoTaxTable
from engines.pricing.zones import SettingsZoneChargeTable
from engines.promotion.services import CouponService


@dataclass(frozen=True)
class FulfillmentDependencies:
    coordinator: OrderTransactionCoordinator
    coupons: CouponService
    purchasing: PurchasingService
    orders: OrderService
    principals: PrincipalProvider
    clock: Clock


_DEPENDENCIES_LOCK = threading.Lock()
_DEPENDENCIES: FulfillmentDependencies | None = None


def _create_dependencies() -> FulfillmentDependencies:
    clock = SystemClock()
    catalog = DjangoCatalogLookup()
    ledger = DjangoStockLedger()
    coupons = CouponService(clock=clock)
    ids = PrefixedUuidOrderIdProvider()
    registry = build_subscriber_registry(
        notifier=EmailNotificationDispatcher(),
        audit_logger=LoggingAuditLogger(clock=clock),
    )

    coordinator = OrderTransactionCoordinator(
        catalog=catalog,
        ledger=ledger,
        coupons=coupons,
        taxes=DjangoTaxTable(),
        zones=SettingsZoneChargeTable(),
        id_provider=ids,
        clock=clock,
        subscriber_registry=registry,
    )

    return FulfillmentDependencies(
        coordinator=coordinator,
        coupons=coupons,
        purchasing=PurchasingService(
            coordinator=coordinator,
            catalog=catalog,
            id_provider=ids,
            clock=clock,
        ),
        orders=OrderService(
            ledger=ledger,
            id_provider=ids,
            clock=clock,
            subscriber_registry=registry,
        ),
        principals=InMemoryPrincipalProvider.from_settings(
            settings.FULFILLMENT.get("API_KEYS", {})
        ),
        clock=clock,
    )


def build_dependencies() -> FulfillmentDependencies:
    """
    Lazy singleton wiring for adapter runtime.
    """
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        if _DEPENDENCIES is None:
            _DEPENDENCIES = _create_dependencies()
        return _DEPENDENCIES


def reset_dependencies() -> None:
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        _DEPENDENCIES = None
