"""
Fulfillment Identity — Principals and Roles
===========================================
The engine consumes identity, it does not issue it.
A request arrives with a Principal (actor id + role) or anonymously.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

from core.errors import PermissionDeniedError


# ══════════════════════════════════════════════════════════════
# PERMISSIONS
# ══════════════════════════════════════════════════════════════

PERMISSION_POS_SELL = "pos.sell"
PERMISSION_ECOMMERCE_ORDER = "ecommerce.order.place"
PERMISSION_GOODS_RECEIVE = "purchasing.goods.receive"
PERMISSION_PURCHASE_ORDER_CREATE = "purchasing.order.create"
PERMISSION_ORDER_REFUND = "orders.refund"
PERMISSION_ORDER_STATUS = "orders.status.update"
PERMISSION_COUPON_VALIDATE = "coupons.validate"

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_CASHIER = "cashier"
ROLE_STOREKEEPER = "storekeeper"
ROLE_CUSTOMER = "customer"
ROLE_ANONYMOUS = "anonymous"

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    ROLE_ADMIN: frozenset({
        PERMISSION_POS_SELL,
        PERMISSION_ECOMMERCE_ORDER,
        PERMISSION_GOODS_RECEIVE,
        PERMISSION_PURCHASE_ORDER_CREATE,
        PERMISSION_ORDER_REFUND,
        PERMISSION_ORDER_STATUS,
        PERMISSION_COUPON_VALIDATE,
    }),
    ROLE_MANAGER: frozenset({
        PERMISSION_POS_SELL,
        PERMISSION_GOODS_RECEIVE,
        PERMISSION_PURCHASE_ORDER_CREATE,
        PERMISSION_ORDER_REFUND,
        PERMISSION_ORDER_STATUS,
        PERMISSION_COUPON_VALIDATE,
    }),
    ROLE_CASHIER: frozenset({
        PERMISSION_POS_SELL,
        PERMISSION_COUPON_VALIDATE,
    }),
    ROLE_STOREKEEPER: frozenset({
        PERMISSION_GOODS_RECEIVE,
        PERMISSION_PURCHASE_ORDER_CREATE,
    }),
    ROLE_CUSTOMER: frozenset({
        PERMISSION_ECOMMERCE_ORDER,
        PERMISSION_COUPON_VALIDATE,
    }),
    ROLE_ANONYMOUS: frozenset(),
}


# ══════════════════════════════════════════════════════════════
# PRINCIPAL
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Principal:
    actor_id: str
    role: str

    def __post_init__(self):
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")
        if self.role not in ROLE_PERMISSIONS:
            raise ValueError(
                f"role '{self.role}' not valid. "
                f"Must be one of: {sorted(ROLE_PERMISSIONS)}"
            )

    @property
    def is_anonymous(self) -> bool:
        return self.role == ROLE_ANONYMOUS


ANONYMOUS = Principal(actor_id="anonymous", role=ROLE_ANONYMOUS)


def has_permission(principal: Principal, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(principal.role, frozenset())


def require_permission(principal: Principal, permission: str) -> None:
    if not has_permission(principal, permission):
        raise PermissionDeniedError(principal.actor_id, permission)


# ══════════════════════════════════════════════════════════════
# API-KEY RESOLUTION
# ══════════════════════════════════════════════════════════════

class PrincipalProvider(Protocol):
    def resolve_api_key(self, api_key: str) -> Optional[Principal]:
        ...


class InMemoryPrincipalProvider:
    """API key → Principal map, built from settings or in tests."""

    def __init__(self, api_key_to_principal: Mapping[str, Principal] | None = None):
        normalized: dict[str, Principal] = {}
        for api_key, principal in dict(api_key_to_principal or {}).items():
            if not isinstance(api_key, str) or not api_key.strip():
                raise ValueError("API key must be a non-empty string.")
            if not isinstance(principal, Principal):
                raise ValueError("Principal must be Principal.")
            normalized[api_key.strip()] = principal
        self._api_key_to_principal = normalized

    @classmethod
    def from_settings(cls, api_keys: Mapping[str, tuple[str, str]]):
        return cls(
            {
                key: Principal(actor_id=actor_id, role=role)
                for key, (actor_id, role) in api_keys.items()
            }
        )

    def resolve_api_key(self, api_key: str) -> Optional[Principal]:
        if not isinstance(api_key, str):
            return None
        return self._api_key_to_principal.get(api_key.strip())
