"""
Fulfillment Pricing — Tax Rules
===============================
Frozen snapshot of the tax table used by one pricing run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol

from engines.pricing.models import Tax, TaxType


@dataclass(frozen=True)
class TaxRule:
    name: str
    rate: Decimal
    tax_type: str
    applicable_categories: frozenset[str] = field(default_factory=frozenset)
    is_active: bool = True

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string.")
        if not isinstance(self.rate, Decimal) or self.rate < 0:
            raise ValueError("rate must be a non-negative Decimal.")
        if self.tax_type not in TaxType.values:
            raise ValueError(f"tax_type must be one of {TaxType.values}.")
        object.__setattr__(self, "applicable_categories", frozenset(self.applicable_categories))

    def applies_to_category(self, category: str) -> bool:
        return (
            self.is_active
            and self.tax_type == TaxType.CATEGORY
            and category in self.applicable_categories
        )

    @property
    def is_full_bill(self) -> bool:
        return self.is_active and self.tax_type == TaxType.FULL_BILL


class TaxTable(Protocol):
    def active_rules(self) -> tuple[TaxRule, ...]:
        ...


class DjangoTaxTable:
    def active_rules(self) -> tuple[TaxRule, ...]:
        return tuple(
            TaxRule(
                name=tax.name,
                rate=tax.rate,
                tax_type=tax.tax_type,
                applicable_categories=frozenset(tax.applicable_categories or ()),
            )
            for tax in Tax.objects.filter(is_active=True).order_by("tax_type", "name")
        )
