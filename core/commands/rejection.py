"""
Fulfillment Command Layer — Rejection Model
============================================
Structured rejection reasons produced by policy functions.

Every rejection must be:
- Deterministic (same input → same rejection)
- Machine-readable (code, optional field)
- Human-readable (message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for a denied request.

    Fields:
        code:        Machine-readable rejection code (e.g. 'COUPON_EXPIRED').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
        field:       Request field the rejection refers to, when there is one.
    """

    code: str
    message: str
    policy_name: str
    field: Optional[str] = None

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

        if self.field is not None and (
            not isinstance(self.field, str) or not self.field
        ):
            raise ValueError("field must be a non-empty string or None.")

    def to_dict(self) -> dict:
        data = {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }
        if self.field is not None:
            data["field"] = self.field
        return data


def first_rejection(
    policies: Iterable[Callable[..., Optional[RejectionReason]]],
    *args,
    **kwargs,
) -> Optional[RejectionReason]:
    """Run policies in order and return the first rejection, if any."""
    for policy in policies:
        rejection = policy(*args, **kwargs)
        if rejection is not None:
            return rejection
    return None


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes. Extensible by engines.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Line items ────────────────────────────────────────────
    MATERIAL_WITH_VARIANT = "MATERIAL_WITH_VARIANT"
    MATERIAL_WITH_ADDONS = "MATERIAL_WITH_ADDONS"
    INCOMPLETE_VARIANT = "INCOMPLETE_VARIANT"
    VARIANT_REQUIRED = "VARIANT_REQUIRED"
    ADDON_NOT_ATTACHED = "ADDON_NOT_ATTACHED"
    DUPLICATE_ADDON = "DUPLICATE_ADDON"
    INACTIVE_PRODUCT = "INACTIVE_PRODUCT"

    # ── Coupons ───────────────────────────────────────────────
    COUPON_INACTIVE = "COUPON_INACTIVE"
    COUPON_NOT_YET_VALID = "COUPON_NOT_YET_VALID"
    COUPON_EXPIRED = "COUPON_EXPIRED"
    COUPON_USAGE_EXHAUSTED = "COUPON_USAGE_EXHAUSTED"
    COUPON_BELOW_MINIMUM = "COUPON_BELOW_MINIMUM"
