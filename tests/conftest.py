from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from core.audit import InMemoryAuditLogger
from core.time import FixedClock
from engines.catalog.lookup import DjangoCatalogLookup
from engines.catalog.models import (
    ColorMaterial,
    Product,
    ProductAddon,
    ProductColor,
    ProductSize,
    RawMaterial,
)
from engines.fulfillment.coordinator import OrderTransactionCoordinator
from engines.fulfillment.ids import SequenceOrderIdProvider
from engines.fulfillment.notifications import InMemoryNotificationDispatcher
from engines.fulfillment.services import OrderService, PurchasingService
from engines.fulfillment.subscriptions import build_subscriber_registry
from engines.inventory.ledger import DjangoStockLedger
from engines.pricing.models import Tax
from engines.pricing.taxes import DjangoTaxTable
from engines.pricing.zones import SettingsZoneChargeTable
from engines.promotion.models import Coupon
from engines.promotion.services import CouponService


NOW = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)


class CatalogSeed:
    """Writes catalog, coupon and tax rows the way back-office screens would."""

    def product(self, name="Dining Table", *, price="1000.00", category="Tables", stock=10, is_active=True):
        return Product.objects.create(
            name=name,
            sku=name.upper().replace(" ", "-"),
            category=category,
            price=Decimal(price),
            stock=stock,
            is_active=is_active,
        )

    def variant(self, product, *, color="Walnut", size="Large", stock=5):
        product_color, _ = ProductColor.objects.get_or_create(product=product, name=color)
        product_size = ProductSize.objects.create(color=product_color, name=size, stock=stock)
        DjangoStockLedger.recompute_product_stock(product.product_id)
        return product_size

    def material(self, name="Varnish", *, stock="10.00", unit_price="100.00", category="Finishes"):
        return RawMaterial.objects.create(
            name=name,
            category=category,
            unit="litres",
            unit_price=Decimal(unit_price),
            stock_quantity=Decimal(stock),
        )

    def addon(self, product, material, *, price="150.00", quantity="1.00"):
        return ProductAddon.objects.create(
            product=product,
            raw_material=material,
            price=Decimal(price),
            quantity=Decimal(quantity),
        )

    def bill_of_materials(self, size, material, *, quantity="2.00"):
        return ColorMaterial.objects.create(
            color=size.color,
            raw_material=material,
            quantity=Decimal(quantity),
        )

    def coupon(self, code="SAVE20", *, discount_type="percentage", **fields):
        return Coupon.objects.create(code=code, discount_type=discount_type, **fields)

    def tax(self, name="VAT", *, rate="10.00", tax_type="full_bill", categories=()):
        return Tax.objects.create(
            name=name,
            rate=Decimal(rate),
            tax_type=tax_type,
            applicable_categories=list(categories),
        )


@pytest.fixture
def seed():
    return CatalogSeed()


@pytest.fixture
def clock():
    return FixedClock(NOW)


def build_engine(clock, *, notifier=None, ledger=None, coupons=None, catalog=None):
    notifier = notifier or InMemoryNotificationDispatcher()
    audit = InMemoryAuditLogger(clock=clock)
    ledger = ledger or DjangoStockLedger()
    coupons = coupons or CouponService(clock=clock)
    catalog = catalog or DjangoCatalogLookup()
    ids = SequenceOrderIdProvider()
    registry = build_subscriber_registry(notifier=notifier, audit_logger=audit)

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
    return SimpleNamespace(
        clock=clock,
        notifier=notifier,
        audit=audit,
        ledger=ledger,
        coupons=coupons,
        registry=registry,
        coordinator=coordinator,
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
    )


@pytest.fixture
def engine(clock):
    return build_engine(clock)


@pytest.fixture
def engine_factory(clock):
    def _build(**overrides):
        return build_engine(clock, **overrides)

    return _build
