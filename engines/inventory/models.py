"""
Fulfillment Inventory — Movement Journal
========================================
One row per stock mutation, written in the same transaction as the
mutation itself. A floored raw-material consumption is recorded with
its shortfall so it can be reconciled later.
"""

import uuid

from django.db import models


class MovementType(models.TextChoices):
    ISSUE = "ISSUE", "Issue (sale)"
    RECEIVE = "RECEIVE", "Receive (goods received)"
    RETURN_IN = "RETURN_IN", "Return in (refund)"
    CONSUME = "CONSUME", "Consume (add-on / bill of materials)"


class StockMovement(models.Model):
    movement_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    movement_type = models.CharField(max_length=16, choices=MovementType.choices)
    granularity = models.CharField(max_length=16)
    item_id = models.UUIDField()
    size_id = models.UUIDField(null=True, blank=True)
    quantity_requested = models.DecimalField(max_digits=12, decimal_places=2)
    quantity_applied = models.DecimalField(max_digits=12, decimal_places=2)
    shortfall = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    stock_after = models.DecimalField(max_digits=12, decimal_places=2)
    reference = models.CharField(max_length=64, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "inventory_stock_movements"
        ordering = ["created_at", "movement_id"]
        indexes = [
            models.Index(fields=["item_id", "created_at"], name="idx_movement_item_time"),
            models.Index(fields=["reference"], name="idx_movement_reference"),
        ]

    def __str__(self) -> str:
        return f"{self.movement_type} {self.quantity_applied} of {self.item_id} ({self.reference})"
