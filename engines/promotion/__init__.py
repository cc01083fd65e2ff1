"""
Fulfillment Promotion
=====================
Coupons: storage, eligibility policies, discount rule, redemption.
"""
