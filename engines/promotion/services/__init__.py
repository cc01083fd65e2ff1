"""
Fulfillment Promotion — Coupon Service
======================================
Two intentionally different behaviors for a bad coupon:

- validate(): the explicit validate-coupon operation. Unknown code
  raises NotFoundError, a failing policy raises CouponRejectedError.
- find() + evaluate_coupon(): used by checkout pricing, where an
  unknown or rejected coupon is dropped and the order goes on
  without a discount.

redeem() is the only writer of `used_count`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol

from django.db.models import F, Q

from core.commands.rejection import ReasonCode, RejectionReason
from core.errors import CouponRejectedError, NotFoundError, ValidationError
from core.primitives import to_money
from core.time import Clock, SystemClock
from engines.promotion.models import Coupon
from engines.promotion.policies import evaluate_coupon
from engines.promotion.terms import CouponTerms, compute_coupon_discount

logger = logging.getLogger("fulfillment.pricing")


def normalize_code(code: str) -> str:
    if not isinstance(code, str) or not code.strip():
        raise ValidationError("code", "Coupon code must be a non-empty string.")
    return code.strip().upper()


@dataclass(frozen=True)
class CouponValidation:
    terms: CouponTerms
    amount: Decimal
    discount: Decimal

    def to_dict(self) -> dict:
        return {
            "valid": True,
            "coupon": self.terms.to_dict(),
            "amount": str(self.amount),
            "discount": str(self.discount),
        }


class CouponBook(Protocol):
    def find(self, code: str) -> Optional[CouponTerms]:
        ...

    def redeem(self, terms: CouponTerms) -> None:
        ...


class CouponService:
    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()

    def find(self, code: str) -> Optional[CouponTerms]:
        coupon = Coupon.objects.filter(code=normalize_code(code)).first()
        if coupon is None:
            return None
        return CouponTerms.from_model(coupon)

    def validate(
        self,
        code: str,
        amount: Decimal,
        *,
        now: Optional[datetime] = None,
    ) -> CouponValidation:
        if isinstance(amount, bool) or not isinstance(amount, Decimal) or amount < 0:
            raise ValidationError("amount", "amount must be a non-negative decimal.")

        terms = self.find(code)
        if terms is None:
            raise NotFoundError("coupon", code)

        subtotal = to_money(amount)
        rejection = evaluate_coupon(
            terms,
            subtotal=subtotal,
            now=now or self._clock.now_utc(),
        )
        if rejection is not None:
            raise CouponRejectedError(terms.code, rejection)

        return CouponValidation(
            terms=terms,
            amount=subtotal,
            discount=compute_coupon_discount(terms, subtotal),
        )

    def redeem(self, terms: CouponTerms) -> None:
        """
        used_count += 1 as one conditional UPDATE.

        The coupon passed its policies at pricing time; losing the race
        for the last use afterwards aborts the order rather than
        silently dropping a discount the order was priced with.
        """
        updated = (
            Coupon.objects.filter(pk=terms.coupon_id, is_active=True)
            .filter(
                Q(usage_limit__isnull=True)
                | Q(usage_limit=0)
                | Q(used_count__lt=F("usage_limit"))
            )
            .update(used_count=F("used_count") + 1)
        )
        if updated:
            return

        logger.warning(f"Coupon {terms.code} could not be redeemed at commit time")
        still_active = Coupon.objects.filter(pk=terms.coupon_id, is_active=True).exists()
        raise CouponRejectedError(
            terms.code,
            RejectionReason(
                code=(
                    ReasonCode.COUPON_USAGE_EXHAUSTED
                    if still_active
                    else ReasonCode.COUPON_INACTIVE
                ),
                message=f"Coupon '{terms.code}' can no longer be redeemed.",
                policy_name="coupon_redeem_guard",
                field="appliedCouponCode",
            ),
        )
