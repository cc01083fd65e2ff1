"""
Fulfillment Event Bus — Event Envelope
======================================
Immutable record of something that already happened.
Built inside the order transaction, dispatched only after commit.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class DomainEvent:
    event_type: str
    payload: dict[str, Any]
    occurred_at: datetime
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        if not self.event_type or not isinstance(self.event_type, str):
            raise ValueError("event_type must be a non-empty string.")
        if not isinstance(self.payload, dict):
            raise ValueError("payload must be a dict.")
        if self.occurred_at.tzinfo is None:
            raise ValueError("occurred_at must be timezone-aware.")
