"""
Fulfillment Inventory - App Configuration
=========================================
Stock ledger and its movement journal.
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "engines.inventory"
    label = "inventory"
    verbose_name = "Fulfillment Inventory"
