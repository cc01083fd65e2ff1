"""
Fulfillment Errors — Public API
===============================
"""

from core.errors.types import (
    CouponRejectedError,
    FulfillmentError,
    InsufficientStockError,
    InvalidItemError,
    NotFoundError,
    PermissionDeniedError,
    TransactionFailure,
    ValidationError,
)

__all__ = [
    "FulfillmentError",
    "ValidationError",
    "PermissionDeniedError",
    "NotFoundError",
    "InsufficientStockError",
    "InvalidItemError",
    "CouponRejectedError",
    "TransactionFailure",
]
