"""
Fulfillment Core Audit — Public API
===================================
Immutable audit entries and the Audit Logger collaborator.
"""

from core.audit.logger import AuditLogger, InMemoryAuditLogger, LoggingAuditLogger
from core.audit.models import AuditEntry

__all__ = [
    "AuditEntry",
    "AuditLogger",
    "InMemoryAuditLogger",
    "LoggingAuditLogger",
]
