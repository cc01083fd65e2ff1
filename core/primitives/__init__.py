"""
Fulfillment Core Primitives
===========================
"""

from core.primitives.money import (
    CENT,
    HUNDRED,
    ZERO,
    money_sum,
    percent_of,
    to_decimal,
    to_money,
)

__all__ = [
    "CENT",
    "HUNDRED",
    "ZERO",
    "money_sum",
    "percent_of",
    "to_decimal",
    "to_money",
]
