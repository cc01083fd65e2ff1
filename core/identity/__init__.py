"""
Fulfillment Identity - Public API
=================================
Principals, role grants and the permission gate.
"""

from core.identity.principal import (
    ANONYMOUS,
    PERMISSION_COUPON_VALIDATE,
    PERMISSION_ECOMMERCE_ORDER,
    PERMISSION_GOODS_RECEIVE,
    PERMISSION_ORDER_REFUND,
    PERMISSION_ORDER_STATUS,
    PERMISSION_POS_SELL,
    PERMISSION_PURCHASE_ORDER_CREATE,
    ROLE_ADMIN,
    ROLE_ANONYMOUS,
    ROLE_CASHIER,
    ROLE_CUSTOMER,
    ROLE_MANAGER,
    ROLE_STOREKEEPER,
    InMemoryPrincipalProvider,
    Principal,
    PrincipalProvider,
    has_permission,
    require_permission,
)

__all__ = [
    "ANONYMOUS",
    "PERMISSION_COUPON_VALIDATE",
    "PERMISSION_ECOMMERCE_ORDER",
    "PERMISSION_GOODS_RECEIVE",
    "PERMISSION_ORDER_REFUND",
    "PERMISSION_ORDER_STATUS",
    "PERMISSION_POS_SELL",
    "PERMISSION_PURCHASE_ORDER_CREATE",
    "ROLE_ADMIN",
    "ROLE_ANONYMOUS",
    "ROLE_CASHIER",
    "ROLE_CUSTOMER",
    "ROLE_MANAGER",
    "ROLE_STOREKEEPER",
    "InMemoryPrincipalProvider",
    "Principal",
    "PrincipalProvider",
    "has_permission",
    "require_permission",
]
