"""
Fulfillment Core Time — Public API
==================================
Explicit clock protocol and validity windows.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
)
from core.time.temporal import ValidityWindow

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "ValidityWindow",
]
