"""
Fulfillment Catalog
===================
Variant hierarchy storage and read-only item resolution.
"""
