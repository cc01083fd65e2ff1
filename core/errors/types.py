"""
Fulfillment Errors — Taxonomy
=============================
Every failure the order engine can surface to a caller.

Rules:
- Every kind carries a machine-readable code and a human message
- Only TransactionFailure is possibly transient (retryable=True)
- The engine never retries; retry is a caller decision
- Raising any of these inside an order rolls the whole order back
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Union

from core.commands.rejection import RejectionReason


Quantity = Union[int, Decimal]


class FulfillmentError(Exception):
    """Base error for the fulfillment engine."""

    code = "FULFILLMENT_ERROR"
    retryable = False

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        if code is not None:
            self.code = code
        self.message = message
        self.details = dict(details or {})
        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
            "retryable": self.retryable,
        }


class ValidationError(FulfillmentError):
    """Malformed or missing request fields. Raised before any transaction starts."""

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message, details={"field": field})


class PermissionDeniedError(FulfillmentError):
    """The principal's role does not grant the required permission."""

    code = "PERMISSION_DENIED"

    def __init__(self, actor_id: str, permission: str):
        self.actor_id = actor_id
        self.permission = permission
        super().__init__(
            f"Actor '{actor_id}' lacks permission '{permission}'.",
            details={"actor_id": actor_id, "permission": permission},
        )


class NotFoundError(FulfillmentError):
    """Unknown item, variant, coupon, order or delivery zone."""

    code = "NOT_FOUND"

    def __init__(self, kind: str, identifier: Any):
        self.kind = kind
        self.identifier = str(identifier)
        super().__init__(
            f"{kind} '{identifier}' not found.",
            details={"kind": kind, "identifier": self.identifier},
        )


class InsufficientStockError(FulfillmentError):
    """Requested quantity exceeds available stock for a specific item or variant."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, item: str, requested: Quantity, available: Quantity):
        self.item = item
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {item}: "
            f"{requested} requested, {available} available.",
            details={
                "item": item,
                "requested": str(requested),
                "available": str(available),
            },
        )


class InvalidItemError(FulfillmentError):
    """Business-rule violation on a line item, reported at field level."""

    code = "INVALID_ITEM"

    def __init__(self, field: str, reason: str, *, rule: Optional[str] = None):
        self.field = field
        self.reason = reason
        self.rule = rule
        details = {"field": field, "reason": reason}
        if rule is not None:
            details["rule"] = rule
        super().__init__(f"Invalid item ({field}): {reason}", details=details)

    @classmethod
    def from_rejection(cls, rejection: RejectionReason, *, line_no: int):
        field = f"items[{line_no}].{rejection.field or 'itemId'}"
        return cls(field, rejection.message, rule=rejection.code)


class CouponRejectedError(FulfillmentError):
    """Coupon is expired, inactive, usage-exhausted or below minimum spend."""

    code = "COUPON_REJECTED"

    def __init__(self, coupon_code: str, rejection: RejectionReason):
        self.coupon_code = coupon_code
        self.rejection = rejection
        super().__init__(
            rejection.message,
            code=rejection.code,
            details={
                "coupon_code": coupon_code,
                "policy_name": rejection.policy_name,
            },
        )


class TransactionFailure(FulfillmentError):
    """Underlying storage error while persisting or mutating stock."""

    code = "TRANSACTION_FAILURE"
    retryable = True

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(
            f"Storage failure during {stage}: {type(cause).__name__}: {cause}",
            details={"stage": stage},
        )
