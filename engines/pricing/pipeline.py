"""
Fulfillment Pricing — Price Pipeline
====================================
Pure function from (lines, coupon, delivery charge, tax rules, now)
to a PriceBreakdown. No database, no clock.

Stage order is fixed; reordering changes results:
    1. subtotal            = Σ unit × qty + Σ addon × qty
    2. category_tax_total  = Σ lines Σ matching category taxes of line_total × rate%
    3. discount            = coupon (eligibility judged on subtotal)
    4. delivery_charge     = zone table lookup (supplied by caller)
    5. taxable_amount      = subtotal + category_tax − discount + delivery
    6. full_bill_tax_total = Σ full-bill taxes of taxable_amount × rate%
    7. total               = subtotal + category_tax + full_bill_tax − discount + delivery

Every stage value is quantized to cents when produced and later
stages consume the quantized value, so `total` re-adds exactly from
the persisted fields.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from core.commands.rejection import RejectionReason
from core.primitives import ZERO, money_sum, percent_of, to_money
from engines.pricing.taxes import TaxRule
from engines.promotion.policies import evaluate_coupon
from engines.promotion.terms import CouponTerms, compute_coupon_discount

logger = logging.getLogger("fulfillment.pricing")


# ══════════════════════════════════════════════════════════════
# INPUT / OUTPUT TYPES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PricingLine:
    line_no: int
    category: str
    unit_price: Decimal
    quantity: int
    addon_prices: tuple[Decimal, ...] = ()

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValueError("quantity must be a positive int.")
        if not isinstance(self.unit_price, Decimal):
            raise ValueError("unit_price must be Decimal.")
        object.__setattr__(self, "addon_prices", tuple(self.addon_prices))

    @property
    def base_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)

    @property
    def addon_total(self) -> Decimal:
        return to_money(sum(self.addon_prices, ZERO) * self.quantity)

    @property
    def line_total(self) -> Decimal:
        return self.base_total + self.addon_total


@dataclass(frozen=True)
class AppliedTax:
    name: str
    tax_type: str
    rate: Decimal
    amount: Decimal
    line_no: Optional[int] = None

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "taxType": self.tax_type,
            "rate": str(self.rate),
            "amount": str(self.amount),
        }
        if self.line_no is not None:
            data["lineNo"] = self.line_no
        return data


def reconstruct_total(
    *,
    subtotal: Decimal,
    category_tax_total: Decimal,
    full_bill_tax_total: Decimal,
    discount: Decimal,
    delivery_charge: Decimal,
) -> Decimal:
    return subtotal + category_tax_total + full_bill_tax_total - discount + delivery_charge


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    category_tax_total: Decimal
    discount: Decimal
    delivery_charge: Decimal
    taxable_amount: Decimal
    full_bill_tax_total: Decimal
    total: Decimal
    applied_taxes: tuple[AppliedTax, ...] = field(default_factory=tuple)
    coupon: Optional[CouponTerms] = None
    coupon_rejection: Optional[RejectionReason] = None

    @property
    def coupon_applied(self) -> bool:
        return self.coupon is not None and self.coupon_rejection is None

    def verify(self) -> bool:
        return self.total == reconstruct_total(
            subtotal=self.subtotal,
            category_tax_total=self.category_tax_total,
            full_bill_tax_total=self.full_bill_tax_total,
            discount=self.discount,
            delivery_charge=self.delivery_charge,
        )

    def to_dict(self) -> dict:
        return {
            "subtotal": str(self.subtotal),
            "categoryTaxTotal": str(self.category_tax_total),
            "fullBillTaxTotal": str(self.full_bill_tax_total),
            "discount": str(self.discount),
            "deliveryCharge": str(self.delivery_charge),
            "total": str(self.total),
        }


# ══════════════════════════════════════════════════════════════
# PIPELINE
# ══════════════════════════════════════════════════════════════

def price_order(
    lines: Iterable[PricingLine],
    *,
    coupon: Optional[CouponTerms] = None,
    delivery_charge: Decimal = ZERO,
    taxes: Iterable[TaxRule] = (),
    now: datetime,
) -> PriceBreakdown:
    lines = tuple(lines)
    taxes = tuple(taxes)

    # 1. subtotal
    subtotal = money_sum(line.line_total for line in lines)

    # 2. category taxes, per line
    applied: list[AppliedTax] = []
    for line in lines:
        for tax in taxes:
            if tax.applies_to_category(line.category):
                applied.append(
                    AppliedTax(
                        name=tax.name,
                        tax_type=tax.tax_type,
                        rate=tax.rate,
                        amount=percent_of(line.line_total, tax.rate),
                        line_no=line.line_no,
                    )
                )
    category_tax_total = money_sum(entry.amount for entry in applied)

    # 3. coupon discount
    discount = ZERO
    rejection = None
    if coupon is not None:
        rejection = evaluate_coupon(coupon, subtotal=subtotal, now=now)
        if rejection is None:
            discount = compute_coupon_discount(coupon, subtotal)
        else:
            logger.info(f"Coupon {coupon.code} not applied: {rejection.code}")

    # 4. delivery
    delivery_charge = to_money(delivery_charge)

    # 5. taxable amount
    taxable_amount = subtotal + category_tax_total - discount + delivery_charge

    # 6. full-bill taxes
    full_bill = [
        AppliedTax(
            name=tax.name,
            tax_type=tax.tax_type,
            rate=tax.rate,
            amount=percent_of(taxable_amount, tax.rate),
        )
        for tax in taxes
        if tax.is_full_bill
    ]
    full_bill_tax_total = money_sum(entry.amount for entry in full_bill)

    # 7. total
    total = reconstruct_total(
        subtotal=subtotal,
        category_tax_total=category_tax_total,
        full_bill_tax_total=full_bill_tax_total,
        discount=discount,
        delivery_charge=delivery_charge,
    )

    return PriceBreakdown(
        subtotal=subtotal,
        category_tax_total=category_tax_total,
        discount=discount,
        delivery_charge=delivery_charge,
        taxable_amount=taxable_amount,
        full_bill_tax_total=full_bill_tax_total,
        total=total,
        applied_taxes=tuple(applied) + tuple(full_bill),
        coupon=coupon,
        coupon_rejection=rejection,
    )
