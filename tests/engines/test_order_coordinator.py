"""
Order Transaction Coordinator — end-to-end behavior against the ORM.

transaction=True so that on_commit callbacks (notifications, audit)
really run, and an aborted order really rolls back.
"""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest
from django.db import OperationalError
from django.db.models import F

from core.errors import (
    CouponRejectedError,
    InsufficientStockError,
    InvalidItemError,
    NotFoundError,
    PermissionDeniedError,
    TransactionFailure,
    ValidationError,
)
from core.identity import ROLE_CASHIER, ROLE_CUSTOMER, Principal
from engines.catalog.lookup import DjangoCatalogLookup
from engines.catalog.models import ProductSize
from engines.fulfillment.commands import CustomerInfo, OrderLine, OrderRequest
from engines.fulfillment.context import ecommerce_context, pos_context
from engines.fulfillment.coordinator import (
    CoordinatorRun,
    CoordinatorState,
    locator_lock_key,
    request_lock_key,
)
from engines.fulfillment.models import Order, OrderItem, OrderStatus
from engines.fulfillment.notifications import InMemoryNotificationDispatcher
from engines.inventory.ledger import DjangoStockLedger
from engines.inventory.models import MovementType, StockMovement
from engines.promotion.models import Coupon
from engines.promotion.services import CouponService

pytestmark = pytest.mark.django_db(transaction=True)


CASHIER = Principal(actor_id="cashier-1", role=ROLE_CASHIER)
CUSTOMER = Principal(actor_id="customer-1", role=ROLE_CUSTOMER)


def product_line(product, quantity=1, *, size=None, addons=()):
    return OrderLine(
        item_kind="product",
        item_id=str(product.product_id),
        quantity=quantity,
        color_id=str(size.color_id) if size is not None else None,
        size=size.name if size is not None else None,
        addons=tuple(str(material.material_id) for material in addons),
    )


def material_line(material, quantity=1, **kwargs):
    return OrderLine(
        item_kind="material",
        item_id=str(material.material_id),
        quantity=quantity,
        **kwargs,
    )


def pos_request(*lines, coupon=None, customer=None):
    return OrderRequest(
        items=lines,
        customer=customer or CustomerInfo(),
        payment_method="cash",
        applied_coupon_code=coupon,
    )


def ecommerce_request(*lines, payment_method="cash_on_delivery", zone="inside_colombo", coupon=None):
    return OrderRequest(
        items=lines,
        customer=CustomerInfo(
            name="Nimal Perera",
            phone="0771234567",
            email="nimal@example.com",
            address="12 Galle Road, Colombo 03",
        ),
        payment_method=payment_method,
        delivery_zone_id=zone,
        applied_coupon_code=coupon,
    )


def reload(obj):
    obj.refresh_from_db()
    return obj


# ══════════════════════════════════════════════════════════════
# HAPPY PATHS
# ══════════════════════════════════════════════════════════════

class TestPosSale:
    def test_simple_product_sale_commits_order_and_decrements_stock(self, engine, seed):
        table = seed.product(stock=10)

        result = engine.coordinator.submit(pos_request(product_line(table, 2)), pos_context(CASHIER))

        assert result.order_id == "TXN-000001"
        assert result.status == OrderStatus.COMPLETED
        assert result.total == Decimal("2000.00")
        assert reload(table).stock == 8

        order = Order.objects.get(pk=result.order_id)
        assert order.customer_name == "Walk-in Customer"
        assert order.created_by == "cashier-1"
        assert order.items.count() == 1
        assert order.items.get().unit_price == Decimal("1000.00")

    def test_persisted_breakdown_re_adds_to_total(self, engine, seed):
        seed.tax("Furniture levy", rate="5.00", tax_type="category", categories=["Tables"])
        seed.tax("VAT", rate="8.00")
        table = seed.product(price="333.33")

        result = engine.coordinator.submit(pos_request(product_line(table, 3)), pos_context(CASHIER))

        order = Order.objects.get(pk=result.order_id)
        assert order.breakdown_total() == order.total
        assert order.total == result.total

    def test_category_tax_only_hits_matching_category(self, engine, seed):
        seed.tax("Furniture levy", rate="5.00", tax_type="category", categories=["Tables"])
        table = seed.product("Dining Table", price="1000.00", category="Tables")
        chair = seed.product("Side Chair", price="500.00", category="Chairs")

        result = engine.coordinator.submit(
            pos_request(product_line(table), product_line(chair)),
            pos_context(CASHIER),
        )

        assert result.breakdown.category_tax_total == Decimal("50.00")
        assert result.total == Decimal("1550.00")

    def test_variant_sale_consumes_bill_of_materials_and_addons(self, engine, seed):
        sofa = seed.product("Sofa", price="2000.00", category="Sofas", stock=0)
        small = seed.variant(sofa, color="Grey", size="Small", stock=3)
        seed.variant(sofa, color="Grey", size="Large", stock=2)
        fabric = seed.material("Fabric", stock="10.00")
        cushion = seed.material("Cushion", stock="5.00")
        seed.bill_of_materials(small, fabric, quantity="2.00")
        seed.addon(sofa, cushion, price="150.00")

        result = engine.coordinator.submit(
            pos_request(product_line(sofa, 2, size=small, addons=[cushion])),
            pos_context(CASHIER),
        )

        assert result.breakdown.subtotal == Decimal("4300.00")
        assert reload(small).stock == 1
        assert reload(sofa).stock == 3
        assert reload(fabric).stock_quantity == Decimal("6.00")
        assert reload(cushion).stock_quantity == Decimal("3.00")
        item = OrderItem.objects.get(order_id=result.order_id)
        assert item.size_name == "Small"
        assert item.addons[0]["name"] == "Cushion"
        assert item.line_total == Decimal("4300.00")

    def test_aggregate_equals_sum_of_sizes_after_commit(self, engine, seed):
        sofa = seed.product("Sofa", price="2000.00", category="Sofas", stock=0)
        small = seed.variant(sofa, color="Grey", size="Small", stock=3)
        large = seed.variant(sofa, color="Blue", size="Large", stock=4)

        engine.coordinator.submit(
            pos_request(product_line(sofa, 1, size=small), product_line(sofa, 2, size=large)),
            pos_context(CASHIER),
        )

        sizes = ProductSize.objects.filter(color__product=sofa)
        assert all(size.stock >= 0 for size in sizes)
        assert reload(sofa).stock == sum(size.stock for size in sizes) == 4

    def test_raw_material_sale(self, engine, seed):
        varnish = seed.material("Varnish", stock="10.00", unit_price="100.00")

        result = engine.coordinator.submit(pos_request(material_line(varnish, 4)), pos_context(CASHIER))

        assert result.total == Decimal("400.00")
        assert reload(varnish).stock_quantity == Decimal("6.00")

    def test_material_shortfall_floors_at_zero_and_is_audited(self, engine, seed):
        sofa = seed.product("Sofa", price="2000.00", category="Sofas", stock=0)
        small = seed.variant(sofa, color="Grey", size="Small", stock=3)
        fabric = seed.material("Fabric", stock="3.00")
        seed.bill_of_materials(small, fabric, quantity="2.00")

        result = engine.coordinator.submit(
            pos_request(product_line(sofa, 2, size=small)), pos_context(CASHIER)
        )

        assert reload(fabric).stock_quantity == Decimal("0.00")
        assert len(result.shortfalls) == 1
        assert result.shortfalls[0].shortfall == Decimal("1.00")
        movement = StockMovement.objects.get(movement_type=MovementType.CONSUME)
        assert movement.shortfall == Decimal("1.00")
        assert "SHORTFALL" in [entry.action for entry in engine.audit.entries]


class TestEcommerceOrder:
    def test_full_pipeline_with_coupon_delivery_and_both_tax_kinds(self, engine, seed):
        seed.tax("Furniture levy", rate="5.00", tax_type="category", categories=["Tables"])
        seed.tax("VAT", rate="10.00", tax_type="full_bill")
        seed.coupon("WELCOME100", discount_type="fixed", discount_amount=Decimal("100.00"))
        table = seed.product(price="1000.00")

        result = engine.coordinator.submit(
            ecommerce_request(product_line(table), coupon="welcome100"),
            ecommerce_context(CUSTOMER),
        )

        breakdown = result.breakdown
        assert breakdown.subtotal == Decimal("1000.00")
        assert breakdown.category_tax_total == Decimal("50.00")
        assert breakdown.discount == Decimal("100.00")
        assert breakdown.delivery_charge == Decimal("300.00")
        assert breakdown.taxable_amount == Decimal("1250.00")
        assert breakdown.full_bill_tax_total == Decimal("125.00")
        assert result.total == Decimal("1375.00")
        assert Order.objects.get(pk=result.order_id).applied_coupon == "WELCOME100"

    @pytest.mark.parametrize(
        "payment_method, expected",
        [
            ("cash_on_delivery", OrderStatus.PROCESSING),
            ("bank_transfer", OrderStatus.PENDING_PAYMENT),
        ],
    )
    def test_initial_status_follows_payment_method(self, engine, seed, payment_method, expected):
        table = seed.product()

        result = engine.coordinator.submit(
            ecommerce_request(product_line(table), payment_method=payment_method),
            ecommerce_context(CUSTOMER),
        )

        assert result.status == expected
        assert result.order_id.startswith("ECOM-")

    def test_unknown_delivery_zone_is_not_found(self, engine, seed):
        table = seed.product(stock=4)

        with pytest.raises(NotFoundError):
            engine.coordinator.submit(
                ecommerce_request(product_line(table), zone="kandy"),
                ecommerce_context(CUSTOMER),
            )
        assert reload(table).stock == 4

    def test_customer_is_notified_after_commit(self, engine, seed):
        table = seed.product()

        result = engine.coordinator.submit(ecommerce_request(product_line(table)), ecommerce_context(CUSTOMER))

        assert [sent["order_id"] for sent in engine.notifier.sent] == [result.order_id]
        assert engine.audit.entries[0].module == "ecommerce"


# ══════════════════════════════════════════════════════════════
# COUPONS
# ══════════════════════════════════════════════════════════════

class TestCouponsAtCheckout:
    def test_percentage_discount_is_capped_and_redeemed_once(self, engine, seed):
        coupon = seed.coupon(
            "SAVE20",
            discount_percent=Decimal("20.00"),
            max_discount=Decimal("150.00"),
        )
        table = seed.product(price="1000.00")

        result = engine.coordinator.submit(
            pos_request(product_line(table), coupon="SAVE20"), pos_context(CASHIER)
        )

        assert result.breakdown.discount == Decimal("150.00")
        assert result.total == Decimal("850.00")
        assert reload(coupon).used_count == 1

    def test_below_minimum_spend_is_dropped_silently(self, engine, seed):
        coupon = seed.coupon(
            "FIFTY",
            discount_type="fixed",
            discount_amount=Decimal("50.00"),
            minimum_amount=Decimal("100.00"),
        )
        stool = seed.product("Stool", price="30.00", category="Chairs")

        result = engine.coordinator.submit(
            pos_request(product_line(stool), coupon="FIFTY"), pos_context(CASHIER)
        )

        assert result.breakdown.discount == Decimal("0.00")
        assert result.to_dict()["couponApplied"] is False
        assert reload(coupon).used_count == 0
        assert Order.objects.get(pk=result.order_id).applied_coupon == ""

    def test_unknown_coupon_is_ignored(self, engine, seed):
        table = seed.product()

        result = engine.coordinator.submit(
            pos_request(product_line(table), coupon="NOPE"), pos_context(CASHIER)
        )

        assert result.breakdown.discount == Decimal("0.00")

    def test_lost_redeem_race_aborts_and_restores_everything(self, engine_factory, seed):
        coupon = seed.coupon("LASTONE", discount_percent=Decimal("10.00"), usage_limit=1)
        table = seed.product(stock=5)

        class CompetingCouponService(CouponService):
            """Another order takes the last use between pricing and redemption."""

            def find(self, code):
                terms = super().find(code)
                Coupon.objects.filter(code=terms.code).update(used_count=F("used_count") + 1)
                return terms

        engine = engine_factory(coupons=CompetingCouponService())

        with pytest.raises(CouponRejectedError) as excinfo:
            engine.coordinator.submit(
                pos_request(product_line(table, 2), coupon="LASTONE"), pos_context(CASHIER)
            )

        assert excinfo.value.code == "COUPON_USAGE_EXHAUSTED"
        assert reload(table).stock == 5
        assert reload(coupon).used_count == 0
        assert Order.objects.count() == 0
        assert StockMovement.objects.count() == 0


# ══════════════════════════════════════════════════════════════
# FAILURES ROLL BACK EVERYTHING
# ══════════════════════════════════════════════════════════════

class TestInsufficientStock:
    def test_one_short_variant_fails_the_whole_cart(self, engine, seed):
        table = seed.product(stock=10)
        sofa = seed.product("Sofa", price="2000.00", category="Sofas", stock=0)
        small = seed.variant(sofa, color="Grey", size="Small", stock=3)

        with pytest.raises(InsufficientStockError) as excinfo:
            engine.coordinator.submit(
                pos_request(product_line(table, 1), product_line(sofa, 4, size=small)),
                pos_context(CASHIER),
            )

        assert excinfo.value.item == "Sofa - Grey / Small"
        assert excinfo.value.available == 3
        assert reload(table).stock == 10
        assert reload(small).stock == 3
        assert Order.objects.count() == 0
        assert engine.notifier.sent == ()
        assert engine.audit.entries == ()

    def test_failure_during_stock_mutation_rolls_back_earlier_lines(self, engine, seed):
        sofa = seed.product("Sofa", price="2000.00", category="Sofas", stock=0)
        small = seed.variant(sofa, color="Grey", size="Small", stock=3)
        fabric = seed.material("Fabric", stock="10.00")
        seed.bill_of_materials(small, fabric, quantity="1.00")

        # Each line fits on its own; together they do not.
        with pytest.raises(InsufficientStockError):
            engine.coordinator.submit(
                pos_request(product_line(sofa, 2, size=small), product_line(sofa, 2, size=small)),
                pos_context(CASHIER),
            )

        assert reload(small).stock == 3
        assert reload(sofa).stock == 3
        assert reload(fabric).stock_quantity == Decimal("10.00")
        assert Order.objects.count() == 0
        assert OrderItem.objects.count() == 0

    def test_last_unit_goes_to_exactly_one_order(self, engine, seed):
        sofa = seed.product("Sofa", price="2000.00", category="Sofas", stock=0)
        small = seed.variant(sofa, color="Grey", size="Small", stock=1)

        first = engine.coordinator.submit(pos_request(product_line(sofa, 1, size=small)), pos_context(CASHIER))
        with pytest.raises(InsufficientStockError):
            engine.coordinator.submit(pos_request(product_line(sofa, 1, size=small)), pos_context(CASHIER))

        assert first.status == OrderStatus.COMPLETED
        assert reload(small).stock == 0
        assert reload(sofa).stock == 0
        assert Order.objects.count() == 1


class TestStorageFailure:
    def test_database_error_surfaces_as_retryable_transaction_failure(self, engine_factory, seed):
        class BrokenLedger(DjangoStockLedger):
            def decrement(self, locator, quantity, *, reference=""):
                raise OperationalError("database is locked")

        engine = engine_factory(ledger=BrokenLedger())
        table = seed.product(stock=5)

        with pytest.raises(TransactionFailure) as excinfo:
            engine.coordinator.submit(pos_request(product_line(table)), pos_context(CASHIER))

        assert excinfo.value.retryable is True
        assert excinfo.value.stage == "mutating_stock"
        assert Order.objects.count() == 0
        assert reload(table).stock == 5


class TestNotificationFailure:
    def test_failed_notification_never_fails_the_order(self, engine_factory, seed, caplog):
        engine = engine_factory(notifier=InMemoryNotificationDispatcher(fail=True))
        table = seed.product()

        with caplog.at_level(logging.ERROR, logger="fulfillment.events"):
            result = engine.coordinator.submit(
                ecommerce_request(product_line(table)), ecommerce_context(CUSTOMER)
            )

        assert Order.objects.filter(pk=result.order_id).exists()
        assert "Subscriber failed" in caplog.text
        assert [entry.action for entry in engine.audit.entries] == ["CREATE"]


# ══════════════════════════════════════════════════════════════
# VALIDATION + LINE RULES
# ══════════════════════════════════════════════════════════════

class TestRequestValidation:
    def test_wrong_role_is_denied_before_anything_is_read(self, engine, seed):
        table = seed.product(stock=3)

        with pytest.raises(PermissionDeniedError):
            engine.coordinator.submit(pos_request(product_line(table)), pos_context(CUSTOMER))
        assert reload(table).stock == 3

    def test_empty_cart(self, engine):
        with pytest.raises(ValidationError) as excinfo:
            engine.coordinator.submit(pos_request(), pos_context(CASHIER))
        assert excinfo.value.field == "items"

    def test_non_positive_quantity(self, engine, seed):
        table = seed.product()
        with pytest.raises(ValidationError) as excinfo:
            engine.coordinator.submit(pos_request(product_line(table, 0)), pos_context(CASHIER))
        assert excinfo.value.field == "items[0].quantity"

    def test_payment_method_must_fit_the_channel(self, engine, seed):
        table = seed.product()
        request = OrderRequest(items=(product_line(table),), payment_method="cash_on_delivery")
        with pytest.raises(ValidationError) as excinfo:
            engine.coordinator.submit(request, pos_context(CASHIER))
        assert excinfo.value.field == "paymentMethod"

    def test_ecommerce_requires_delivery_details(self, engine, seed):
        table = seed.product()
        request = OrderRequest(
            items=(product_line(table),),
            customer=CustomerInfo(name="Nimal", address="Colombo"),
            payment_method="cash_on_delivery",
        )
        with pytest.raises(ValidationError) as excinfo:
            engine.coordinator.submit(request, ecommerce_context(CUSTOMER))
        assert excinfo.value.field == "customer.phone"

    @pytest.mark.parametrize("email", ["", "nimal.example.com"])
    def test_ecommerce_needs_a_valid_email(self, engine, seed, email):
        table = seed.product(stock=4)
        request = OrderRequest(
            items=(product_line(table),),
            customer=CustomerInfo(name="Nimal", phone="0771234567", email=email, address="Colombo"),
            payment_method="cash_on_delivery",
        )
        with pytest.raises(ValidationError) as excinfo:
            engine.coordinator.submit(request, ecommerce_context(CUSTOMER))
        assert excinfo.value.field == "customer.email"
        assert Order.objects.count() == 0
        assert reload(table).stock == 4


class TestLineRules:
    def _submit(self, engine, line):
        return engine.coordinator.submit(pos_request(line), pos_context(CASHIER))

    def test_material_cannot_carry_a_size(self, engine, seed):
        varnish = seed.material()
        with pytest.raises(InvalidItemError) as excinfo:
            self._submit(engine, material_line(varnish, size="Large"))
        assert excinfo.value.field == "items[0].size"
        assert excinfo.value.rule == "MATERIAL_WITH_VARIANT"

    def test_material_cannot_carry_addons(self, engine, seed):
        varnish = seed.material()
        with pytest.raises(InvalidItemError) as excinfo:
            self._submit(engine, material_line(varnish, addons=(str(varnish.material_id),)))
        assert excinfo.value.rule == "MATERIAL_WITH_ADDONS"

    def test_color_without_size(self, engine, seed):
        sofa = seed.product("Sofa", category="Sofas", stock=0)
        small = seed.variant(sofa, color="Grey", size="Small", stock=3)
        line = OrderLine(item_kind="product", item_id=str(sofa.product_id), quantity=1, color_id=str(small.color_id))
        with pytest.raises(InvalidItemError) as excinfo:
            self._submit(engine, line)
        assert excinfo.value.field == "items[0].size"
        assert excinfo.value.rule == "INCOMPLETE_VARIANT"

    def test_product_with_variants_needs_a_selection(self, engine, seed):
        sofa = seed.product("Sofa", category="Sofas", stock=0)
        seed.variant(sofa, color="Grey", size="Small", stock=3)
        with pytest.raises(InvalidItemError) as excinfo:
            self._submit(engine, product_line(sofa))
        assert excinfo.value.field == "items[0].colorId"
        assert excinfo.value.rule == "VARIANT_REQUIRED"
        assert reload(sofa).stock == 3

    def test_addon_must_be_attached_to_the_product(self, engine, seed):
        table = seed.product()
        stray = seed.material("Glass top")
        with pytest.raises(InvalidItemError) as excinfo:
            self._submit(engine, product_line(table, addons=[stray]))
        assert excinfo.value.field == "items[0].addons"
        assert excinfo.value.rule == "ADDON_NOT_ATTACHED"

    def test_inactive_product_cannot_be_sold(self, engine, seed):
        table = seed.product(is_active=False)
        with pytest.raises(InvalidItemError) as excinfo:
            self._submit(engine, product_line(table))
        assert excinfo.value.rule == "INACTIVE_PRODUCT"

    def test_unknown_product(self, engine):
        line = OrderLine(item_kind="product", item_id="8e0b8a4e-52c4-4d8a-9a8e-000000000000", quantity=1)
        with pytest.raises(NotFoundError):
            self._submit(engine, line)
        assert Order.objects.count() == 0


# ══════════════════════════════════════════════════════════════
# LOCK ORDER
# ══════════════════════════════════════════════════════════════

class TestLockOrder:
    """Rows are taken in the same order whatever order the cart lists them in."""

    @pytest.fixture
    def calls(self):
        return []

    @pytest.fixture
    def recording_engine(self, engine_factory, calls):
        class RecordingCatalog(DjangoCatalogLookup):
            def resolve(self, item_kind, item_id, color_id=None, size_name=None, *, lock=False):
                calls.append(("resolve", (item_kind, str(item_id), str(color_id or ""), size_name or "")))
                return super().resolve(item_kind, item_id, color_id, size_name, lock=lock)

        class RecordingLedger(DjangoStockLedger):
            def decrement(self, locator, quantity, *, reference=""):
                calls.append(("decrement", locator_lock_key(locator)))
                return super().decrement(locator, quantity, reference=reference)

            def consume_material(self, material_id, quantity, *, reference=""):
                calls.append(("consume", str(material_id)))
                return super().consume_material(material_id, quantity, reference=reference)

        return engine_factory(catalog=RecordingCatalog(), ledger=RecordingLedger())

    @pytest.fixture
    def showroom(self, seed):
        sofa = seed.product("Sofa", price="2000.00", category="Sofas", stock=0)
        small = seed.variant(sofa, color="Grey", size="Small", stock=3)
        large = seed.variant(sofa, color="Blue", size="Large", stock=3)
        fabric = seed.material("Fabric", stock="20.00")
        thread = seed.material("Thread", stock="20.00")
        seed.bill_of_materials(small, thread, quantity="1.00")
        seed.bill_of_materials(small, fabric, quantity="2.00")
        seed.bill_of_materials(large, fabric, quantity="3.00")
        return sofa, small, large, fabric, thread, seed.product(stock=5)

    def test_catalog_rows_are_resolved_in_key_order(self, recording_engine, calls, showroom):
        sofa, small, large, _, _, table = showroom
        lines = (product_line(sofa, 1, size=large), product_line(table), product_line(sofa, 2, size=small))

        result = recording_engine.coordinator.submit(pos_request(*lines), pos_context(CASHIER))

        resolved = [key for kind, key in calls if kind == "resolve"]
        assert resolved == sorted(request_lock_key(line) for line in lines)
        # Items are still stored in cart order.
        items = OrderItem.objects.filter(order_id=result.order_id).order_by("line_no")
        assert [item.size_name for item in items] == ["Large", "", "Small"]

    def test_counters_then_materials_in_key_order(self, recording_engine, calls, showroom):
        sofa, small, large, fabric, thread, table = showroom

        recording_engine.coordinator.submit(
            pos_request(
                product_line(sofa, 1, size=large),
                product_line(table),
                product_line(sofa, 2, size=small),
            ),
            pos_context(CASHIER),
        )

        mutations = [(kind, key) for kind, key in calls if kind != "resolve"]
        decrements = [key for kind, key in mutations if kind == "decrement"]
        consumed = [key for kind, key in mutations if kind == "consume"]
        assert len(decrements) == 3
        assert decrements == sorted(decrements)
        assert [kind for kind, _ in mutations] == ["decrement"] * 3 + ["consume"] * 2
        assert consumed == sorted(str(material.material_id) for material in (fabric, thread))

    def test_material_demand_is_summed_across_lines(self, recording_engine, showroom):
        sofa, small, large, fabric, thread, _ = showroom

        recording_engine.coordinator.submit(
            pos_request(product_line(sofa, 1, size=large), product_line(sofa, 2, size=small)),
            pos_context(CASHIER),
        )

        assert reload(fabric).stock_quantity == Decimal("13.00")
        assert reload(thread).stock_quantity == Decimal("18.00")
        assert StockMovement.objects.filter(movement_type=MovementType.CONSUME).count() == 2


# ══════════════════════════════════════════════════════════════
# RUN STATE MACHINE
# ══════════════════════════════════════════════════════════════

class TestCoordinatorRun:
    def test_walks_forward_only(self):
        run = CoordinatorRun("pos")
        run.advance(CoordinatorState.PRICING)
        with pytest.raises(RuntimeError):
            run.advance(CoordinatorState.MUTATING_STOCK)

    def test_abort_is_terminal(self):
        run = CoordinatorRun("pos")
        run.abort(ValidationError("items", "empty"))
        assert run.state is CoordinatorState.ABORTED
        assert run.is_terminal
        with pytest.raises(RuntimeError):
            run.abort(ValidationError("items", "empty"))

    def test_full_history(self):
        run = CoordinatorRun("pos")
        for state in (
            CoordinatorState.PRICING,
            CoordinatorState.PERSISTING,
            CoordinatorState.MUTATING_STOCK,
            CoordinatorState.COMMITTED,
        ):
            run.advance(state)
        assert run.history[0] is CoordinatorState.VALIDATING
        assert run.history[-1] is CoordinatorState.COMMITTED
