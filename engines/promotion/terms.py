"""
Fulfillment Promotion — Coupon Terms
====================================
Immutable snapshot of a coupon, taken once per order, plus the
discount rule. Pure: no database access.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.primitives import ZERO, percent_of, to_money
from core.time import ValidityWindow
from engines.promotion.models import DiscountType


@dataclass(frozen=True)
class CouponTerms:
    coupon_id: uuid.UUID
    code: str
    discount_type: str
    discount_percent: Decimal = ZERO
    discount_amount: Decimal = ZERO
    minimum_amount: Decimal = ZERO
    max_discount: Optional[Decimal] = None
    usage_limit: Optional[int] = None
    used_count: int = 0
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    is_active: bool = True

    def __post_init__(self):
        if self.discount_type not in DiscountType.values:
            raise ValueError(
                f"discount_type must be one of {DiscountType.values}, got '{self.discount_type}'."
            )
        object.__setattr__(self, "code", self.code.strip().upper())
        if not self.max_discount:
            object.__setattr__(self, "max_discount", None)
        if not self.usage_limit:
            object.__setattr__(self, "usage_limit", None)

    @classmethod
    def from_model(cls, coupon) -> "CouponTerms":
        return cls(
            coupon_id=coupon.coupon_id,
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_percent=coupon.discount_percent,
            discount_amount=coupon.discount_amount,
            minimum_amount=coupon.minimum_amount,
            max_discount=coupon.max_discount,
            usage_limit=coupon.usage_limit,
            used_count=coupon.used_count,
            valid_from=coupon.valid_from,
            valid_to=coupon.valid_to,
            is_active=coupon.is_active,
        )

    @property
    def window(self) -> ValidityWindow:
        return ValidityWindow(start=self.valid_from, end=self.valid_to)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "discountType": self.discount_type,
            "discountPercent": str(self.discount_percent),
            "discountAmount": str(self.discount_amount),
            "minimumAmount": str(self.minimum_amount),
            "maxDiscount": None if self.max_discount is None else str(self.max_discount),
            "usageLimit": self.usage_limit,
            "usedCount": self.used_count,
            "validFrom": self.valid_from.isoformat() if self.valid_from else None,
            "validTo": self.valid_to.isoformat() if self.valid_to else None,
        }


def compute_coupon_discount(terms: CouponTerms, subtotal: Decimal) -> Decimal:
    """
    Percentage: subtotal × percent / 100, capped at max_discount when set.
    Fixed: the fixed amount, not capped by the subtotal.
    """
    if terms.discount_type == DiscountType.PERCENTAGE:
        discount = percent_of(subtotal, terms.discount_percent)
        if terms.max_discount is not None:
            discount = min(discount, to_money(terms.max_discount))
        return discount
    return to_money(terms.discount_amount)
