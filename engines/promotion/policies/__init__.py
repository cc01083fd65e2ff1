"""
Fulfillment Promotion — Coupon Policies
=======================================
Each policy answers None (pass) or a RejectionReason.
Evaluated in a fixed order; the first rejection wins.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.commands.rejection import ReasonCode, RejectionReason, first_rejection
from engines.promotion.terms import CouponTerms


def coupon_must_be_active_policy(
    terms: CouponTerms, *, subtotal: Decimal, now: datetime,
) -> Optional[RejectionReason]:
    if terms.is_active:
        return None
    return RejectionReason(
        code=ReasonCode.COUPON_INACTIVE,
        message=f"Coupon '{terms.code}' is inactive.",
        policy_name="coupon_must_be_active_policy",
        field="appliedCouponCode",
    )


def coupon_validity_window_policy(
    terms: CouponTerms, *, subtotal: Decimal, now: datetime,
) -> Optional[RejectionReason]:
    window = terms.window
    if not window.has_started(now):
        return RejectionReason(
            code=ReasonCode.COUPON_NOT_YET_VALID,
            message=f"Coupon '{terms.code}' is not valid until {terms.valid_from.isoformat()}.",
            policy_name="coupon_validity_window_policy",
            field="appliedCouponCode",
        )
    if window.has_ended(now):
        return RejectionReason(
            code=ReasonCode.COUPON_EXPIRED,
            message=f"Coupon '{terms.code}' has expired.",
            policy_name="coupon_validity_window_policy",
            field="appliedCouponCode",
        )
    return None


def coupon_usage_limit_policy(
    terms: CouponTerms, *, subtotal: Decimal, now: datetime,
) -> Optional[RejectionReason]:
    if terms.usage_limit is None or terms.used_count < terms.usage_limit:
        return None
    return RejectionReason(
        code=ReasonCode.COUPON_USAGE_EXHAUSTED,
        message=f"Coupon '{terms.code}' usage limit reached.",
        policy_name="coupon_usage_limit_policy",
        field="appliedCouponCode",
    )


def coupon_minimum_spend_policy(
    terms: CouponTerms, *, subtotal: Decimal, now: datetime,
) -> Optional[RejectionReason]:
    if terms.minimum_amount <= 0 or subtotal >= terms.minimum_amount:
        return None
    return RejectionReason(
        code=ReasonCode.COUPON_BELOW_MINIMUM,
        message=f"Minimum order amount is {terms.minimum_amount:.2f}.",
        policy_name="coupon_minimum_spend_policy",
        field="appliedCouponCode",
    )


COUPON_POLICIES = (
    coupon_must_be_active_policy,
    coupon_validity_window_policy,
    coupon_usage_limit_policy,
    coupon_minimum_spend_policy,
)


def evaluate_coupon(
    terms: CouponTerms, *, subtotal: Decimal, now: datetime,
) -> Optional[RejectionReason]:
    return first_rejection(COUPON_POLICIES, terms, subtotal=subtotal, now=now)
