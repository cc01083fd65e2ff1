"""
Fulfillment Orders - App Configuration
======================================
Order headers, items, purchase orders, refunds.
"""

from django.apps import AppConfig


class FulfillmentConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "engines.fulfillment"
    label = "fulfillment"
    verbose_name = "Fulfillment Orders"
