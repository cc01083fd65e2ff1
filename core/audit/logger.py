"""
Fulfillment Core Audit — Audit Logger Collaborators
===================================================
record(action, module, description) is fire-and-forget from the
engine's point of view: it is only ever called from post-commit
subscribers, where the dispatcher logs and absorbs failures.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Optional, Protocol

from core.audit.models import AuditEntry
from core.time import Clock, SystemClock

logger = logging.getLogger("fulfillment.audit")


class AuditLogger(Protocol):
    def record(
        self,
        action: str,
        module: str,
        description: str,
        *,
        actor_id: str = "system",
        metadata: Optional[dict] = None,
    ) -> AuditEntry:
        ...


def _build_entry(clock: Clock, action, module, description, actor_id, metadata) -> AuditEntry:
    return AuditEntry(
        entry_id=uuid.uuid4(),
        action=action,
        module=module,
        description=description,
        actor_id=actor_id,
        occurred_at=clock.now_utc(),
        metadata=dict(metadata or {}),
    )


class LoggingAuditLogger:
    """Writes audit entries to the `fulfillment.audit` logger."""

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()

    def record(self, action, module, description, *, actor_id="system", metadata=None):
        entry = _build_entry(self._clock, action, module, description, actor_id, metadata)
        logger.info(
            f"[{entry.module}] {entry.action} by {entry.actor_id}: {entry.description}"
        )
        return entry


class InMemoryAuditLogger:
    """Collects entries in memory. Used by tests and local runs."""

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()
        self._entries: list[AuditEntry] = []
        self._lock = threading.Lock()

    def record(self, action, module, description, *, actor_id="system", metadata=None):
        entry = _build_entry(self._clock, action, module, description, actor_id, metadata)
        with self._lock:
            self._entries.append(entry)
        return entry

    @property
    def entries(self) -> tuple[AuditEntry, ...]:
        with self._lock:
            return tuple(self._entries)
