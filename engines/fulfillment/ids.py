"""
Fulfillment Orders — Identifier Providers
=========================================
Human-facing ids: TXN-…, ECOM-…, GRN-…, PO-…, REFUND-….
Prefixes come from FULFILLMENT["ORDER_ID_PREFIXES"].
"""

from __future__ import annotations

import threading
import uuid
from typing import Mapping, Optional, Protocol

from django.conf import settings


class OrderIdProvider(Protocol):
    def new_id(self, kind: str) -> str:
        ...


def _prefixes(prefixes: Optional[Mapping[str, str]]) -> dict[str, str]:
    if prefixes is None:
        prefixes = settings.FULFILLMENT.get("ORDER_ID_PREFIXES", {})
    return dict(prefixes)


def _prefix_for(prefixes: Mapping[str, str], kind: str) -> str:
    try:
        return prefixes[kind]
    except KeyError:
        raise ValueError(f"No id prefix configured for '{kind}'.") from None


class PrefixedUuidOrderIdProvider:
    """Prefix + 16 upper-case hex chars of a uuid4."""

    def __init__(self, prefixes: Optional[Mapping[str, str]] = None):
        self._prefixes = _prefixes(prefixes)

    def new_id(self, kind: str) -> str:
        return f"{_prefix_for(self._prefixes, kind)}-{uuid.uuid4().hex[:16].upper()}"


class SequenceOrderIdProvider:
    """Deterministic ids (TXN-000001, TXN-000002, …) for tests."""

    def __init__(self, prefixes: Optional[Mapping[str, str]] = None):
        self._prefixes = _prefixes(prefixes)
        self._counters: dict[str, int] = {}
        self._lock = threading.Lock()

    def new_id(self, kind: str) -> str:
        prefix = _prefix_for(self._prefixes, kind)
        with self._lock:
            self._counters[kind] = self._counters.get(kind, 0) + 1
            return f"{prefix}-{self._counters[kind]:06d}"
