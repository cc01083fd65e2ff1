"""
Fulfillment Core Audit — Immutable Audit Entries
================================================
Append-only record of who did what to which module.
Frozen dataclasses — once created, never modified.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class AuditEntry:
    """
    One audit-trail line: action + module + description.

    action examples: CREATE, REFUND, STATUS_CHANGE, RECEIVE.
    module examples: pos, ecommerce, purchasing, inventory.
    """

    entry_id: uuid.UUID
    action: str
    module: str
    description: str
    actor_id: str
    occurred_at: datetime
    metadata: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.action or not isinstance(self.action, str):
            raise ValueError("action must be a non-empty string.")
        if not self.module or not isinstance(self.module, str):
            raise ValueError("module must be a non-empty string.")
        if self.occurred_at.tzinfo is None:
            raise ValueError("occurred_at must be timezone-aware.")
