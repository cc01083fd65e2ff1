"""
Tests for core.audit — Audit entries and logger collaborators.
"""

import logging
import uuid
import pytest
from datetime import datetime, timezone

from core.audit import AuditEntry, InMemoryAuditLogger, LoggingAuditLogger
from core.time import FixedClock


NOW = datetime(2026, 3, 1, 10, 0, 0, tzinfo=timezone.utc)


# ── AuditEntry Tests ─────────────────────────────────────────

class TestAuditEntry:
    def test_create_valid_entry(self):
        entry = AuditEntry(
            entry_id=uuid.uuid4(),
            action="CREATE",
            module="pos",
            description="Order TXN-000001 committed",
            actor_id="cashier-1",
            occurred_at=NOW,
        )
        assert entry.module == "pos"
        assert entry.metadata == {}

    def test_frozen_immutability(self):
        entry = AuditEntry(
            entry_id=uuid.uuid4(),
            action="CREATE",
            module="pos",
            description="x",
            actor_id="cashier-1",
            occurred_at=NOW,
        )
        with pytest.raises(AttributeError):
            entry.action = "REFUND"

    @pytest.mark.parametrize("field, value", [("action", ""), ("module", "")])
    def test_rejects_blank_action_and_module(self, field, value):
        fields = dict(
            entry_id=uuid.uuid4(),
            action="CREATE",
            module="pos",
            description="x",
            actor_id="cashier-1",
            occurred_at=NOW,
        )
        fields[field] = value
        with pytest.raises(ValueError):
            AuditEntry(**fields)

    def test_rejects_naive_timestamp(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            AuditEntry(
                entry_id=uuid.uuid4(),
                action="CREATE",
                module="pos",
                description="x",
                actor_id="cashier-1",
                occurred_at=datetime(2026, 3, 1),
            )


# ── Logger Tests ─────────────────────────────────────────────

class TestInMemoryAuditLogger:
    def test_records_in_order_with_clock_time(self):
        audit = InMemoryAuditLogger(clock=FixedClock(NOW))
        audit.record("CREATE", "pos", "first", actor_id="cashier-1")
        audit.record("REFUND", "pos", "second", metadata={"refund_id": "REFUND-000001"})

        assert [entry.description for entry in audit.entries] == ["first", "second"]
        assert audit.entries[0].occurred_at == NOW
        assert audit.entries[1].actor_id == "system"
        assert audit.entries[1].metadata == {"refund_id": "REFUND-000001"}

    def test_entries_is_a_snapshot(self):
        audit = InMemoryAuditLogger(clock=FixedClock(NOW))
        before = audit.entries
        audit.record("CREATE", "pos", "x")
        assert before == ()


class TestLoggingAuditLogger:
    def test_writes_to_audit_logger(self, caplog):
        audit = LoggingAuditLogger(clock=FixedClock(NOW))
        with caplog.at_level(logging.INFO, logger="fulfillment.audit"):
            entry = audit.record("CREATE", "ecommerce", "Order ECOM-1 committed", actor_id="customer-1")

        assert entry.module == "ecommerce"
        assert "[ecommerce] CREATE by customer-1: Order ECOM-1 committed" in caplog.text
