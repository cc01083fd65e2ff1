"""
Fulfillment Catalog - App Configuration
=======================================
Products, color/size variants, raw materials, add-ons and the
color bill of materials. Stock counters live on these rows; only
the inventory ledger mutates them.
"""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "engines.catalog"
    label = "catalog"
    verbose_name = "Fulfillment Catalog"
