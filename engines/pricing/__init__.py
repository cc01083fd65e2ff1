"""
Fulfillment Pricing
===================
Taxes, delivery zone charges and the pure price pipeline.
"""
