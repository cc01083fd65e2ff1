"""
Fulfillment Pricing — Tax Model
===============================
category taxes apply per line, to lines whose category is listed;
full_bill taxes apply once to the taxable amount.
"""

import uuid

from django.db import models


class TaxType(models.TextChoices):
    CATEGORY = "category", "Category"
    FULL_BILL = "full_bill", "Full bill"


class Tax(models.Model):
    tax_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    rate = models.DecimalField(max_digits=5, decimal_places=2)
    tax_type = models.CharField(max_length=16, choices=TaxType.choices)
    applicable_categories = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "pricing_taxes"
        ordering = ["tax_type", "name"]

    def __str__(self) -> str:
        return f"{self.name} {self.rate}% ({self.tax_type})"
