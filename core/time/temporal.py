"""
Fulfillment Core Time — Validity Windows
========================================
Pure interval checks. All functions take an explicit `now`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ValidityWindow:
    """
    A closed interval [start, end] where either bound may be open.

    Invariant: start <= end when both are set.
    """

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(
                f"ValidityWindow start ({self.start}) must be <= end ({self.end})."
            )

    def has_started(self, now: datetime) -> bool:
        return self.start is None or self.start <= now

    def has_ended(self, now: datetime) -> bool:
        return self.end is not None and now > self.end

    def contains(self, now: datetime) -> bool:
        """Check if `now` falls within the window (inclusive)."""
        return self.has_started(now) and not self.has_ended(now)
