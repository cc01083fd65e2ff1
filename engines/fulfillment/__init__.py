"""
Fulfillment Orders
==================
Point-of-sale transactions, e-commerce orders and goods-received
notes share one order shape and one transaction coordinator.
"""
