"""
Fulfillment Command Layer — Rejections
=======================================
Policies answer with a RejectionReason or None.
The engine turns a rejection into the matching error kind.
"""

from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
    first_rejection,
)

__all__ = [
    "ReasonCode",
    "RejectionReason",
    "first_rejection",
]
