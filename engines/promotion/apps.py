"""
Fulfillment Promotion - App Configuration
=========================================
"""

from django.apps import AppConfig


class PromotionConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "engines.promotion"
    label = "promotion"
    verbose_name = "Fulfillment Promotion"
