from datetime import timedelta
from decimal import Decimal

import pytest

from core.commands.rejection import ReasonCode
from core.errors import CouponRejectedError, NotFoundError, ValidationError
from engines.promotion.models import Coupon
from engines.promotion.policies import evaluate_coupon
from engines.promotion.services import CouponService
from engines.promotion.terms import CouponTerms

pytestmark = pytest.mark.django_db


@pytest.fixture
def coupons(clock):
    return CouponService(clock=clock)


class TestValidate:
    def test_valid_percentage_coupon(self, coupons, seed):
        seed.coupon("save20", discount_percent=Decimal("20.00"), max_discount=Decimal("150.00"))

        validation = coupons.validate("SAVE20", Decimal("1000"))

        assert validation.discount == Decimal("150.00")
        data = validation.to_dict()
        assert data["valid"] is True
        assert data["coupon"]["code"] == "SAVE20"
        assert data["amount"] == "1000.00"

    def test_code_lookup_ignores_case_and_whitespace(self, coupons, seed):
        seed.coupon("WELCOME", discount_type="fixed", discount_amount=Decimal("100.00"))
        assert coupons.validate("  welcome ", Decimal("500")).discount == Decimal("100.00")

    def test_unknown_code(self, coupons):
        with pytest.raises(NotFoundError):
            coupons.validate("NOPE", Decimal("100"))

    def test_below_minimum_spend(self, coupons, seed):
        seed.coupon(
            "FIFTY",
            discount_type="fixed",
            discount_amount=Decimal("50.00"),
            minimum_amount=Decimal("100.00"),
        )
        with pytest.raises(CouponRejectedError) as excinfo:
            coupons.validate("FIFTY", Decimal("30"))
        assert excinfo.value.code == ReasonCode.COUPON_BELOW_MINIMUM

    def test_inactive(self, coupons, seed):
        seed.coupon("OFF", discount_percent=Decimal("10.00"), is_active=False)
        with pytest.raises(CouponRejectedError) as excinfo:
            coupons.validate("OFF", Decimal("100"))
        assert excinfo.value.code == ReasonCode.COUPON_INACTIVE

    def test_window_is_checked_against_the_clock(self, coupons, seed, clock):
        seed.coupon(
            "SPRING",
            discount_percent=Decimal("10.00"),
            valid_from=clock.now_utc() + timedelta(days=1),
            valid_to=clock.now_utc() + timedelta(days=10),
        )
        with pytest.raises(CouponRejectedError) as excinfo:
            coupons.validate("SPRING", Decimal("100"))
        assert excinfo.value.code == ReasonCode.COUPON_NOT_YET_VALID

        clock.advance(timedelta(days=2).total_seconds())
        assert coupons.validate("SPRING", Decimal("100")).discount == Decimal("10.00")

        clock.advance(timedelta(days=30).total_seconds())
        with pytest.raises(CouponRejectedError) as excinfo:
            coupons.validate("SPRING", Decimal("100"))
        assert excinfo.value.code == ReasonCode.COUPON_EXPIRED

    def test_exhausted(self, coupons, seed):
        seed.coupon("ONCE", discount_percent=Decimal("10.00"), usage_limit=1, used_count=1)
        with pytest.raises(CouponRejectedError) as excinfo:
            coupons.validate("ONCE", Decimal("100"))
        assert excinfo.value.code == ReasonCode.COUPON_USAGE_EXHAUSTED

    def test_zero_usage_limit_means_unlimited(self, coupons, seed):
        seed.coupon("ALWAYS", discount_percent=Decimal("10.00"), usage_limit=0, used_count=500)
        assert coupons.validate("ALWAYS", Decimal("100")).discount == Decimal("10.00")

    def test_validate_never_redeems(self, coupons, seed):
        coupon = seed.coupon("SAVE20", discount_percent=Decimal("20.00"))
        coupons.validate("SAVE20", Decimal("100"))
        coupon.refresh_from_db()
        assert coupon.used_count == 0

    @pytest.mark.parametrize("amount", [Decimal("-1"), 100.0, "100"])
    def test_amount_must_be_non_negative_decimal(self, coupons, amount):
        with pytest.raises(ValidationError):
            coupons.validate("SAVE20", amount)

    def test_blank_code(self, coupons):
        with pytest.raises(ValidationError):
            coupons.validate("   ", Decimal("100"))


class TestRedeem:
    def test_increments_used_count(self, coupons, seed):
        coupon = seed.coupon("SAVE20", discount_percent=Decimal("20.00"), usage_limit=2)

        coupons.redeem(coupons.find("SAVE20"))

        coupon.refresh_from_db()
        assert coupon.used_count == 1

    def test_last_use_cannot_be_taken_twice(self, coupons, seed):
        seed.coupon("LAST", discount_percent=Decimal("20.00"), usage_limit=1)
        terms = coupons.find("LAST")

        coupons.redeem(terms)
        with pytest.raises(CouponRejectedError) as excinfo:
            coupons.redeem(terms)

        assert excinfo.value.code == ReasonCode.COUPON_USAGE_EXHAUSTED
        assert Coupon.objects.get(code="LAST").used_count == 1

    def test_deactivated_after_pricing(self, coupons, seed):
        seed.coupon("GONE", discount_percent=Decimal("20.00"))
        terms = coupons.find("GONE")
        Coupon.objects.filter(code="GONE").update(is_active=False)

        with pytest.raises(CouponRejectedError) as excinfo:
            coupons.redeem(terms)
        assert excinfo.value.code == ReasonCode.COUPON_INACTIVE


class TestCouponTerms:
    def test_policies_run_in_order(self, clock):
        terms = CouponTerms(
            coupon_id=Coupon().coupon_id,
            code="x",
            discount_type="fixed",
            discount_amount=Decimal("10.00"),
            minimum_amount=Decimal("100.00"),
            is_active=False,
        )
        rejection = evaluate_coupon(terms, subtotal=Decimal("5.00"), now=clock.now_utc())
        assert rejection.code == ReasonCode.COUPON_INACTIVE

    def test_unknown_discount_type(self):
        with pytest.raises(ValueError):
            CouponTerms(coupon_id=Coupon().coupon_id, code="X", discount_type="bogof")

    def test_model_saves_upper_case_code(self, seed):
        assert seed.coupon("mixedCase", discount_percent=Decimal("5")).code == "MIXEDCASE"
