"""
Tests for core.identity — principals, role grants, API-key resolution.
"""

import pytest

from core.errors import PermissionDeniedError
from core.identity import (
    ANONYMOUS,
    PERMISSION_COUPON_VALIDATE,
    PERMISSION_ECOMMERCE_ORDER,
    PERMISSION_GOODS_RECEIVE,
    PERMISSION_ORDER_REFUND,
    PERMISSION_ORDER_STATUS,
    PERMISSION_POS_SELL,
    PERMISSION_PURCHASE_ORDER_CREATE,
    ROLE_ADMIN,
    ROLE_CASHIER,
    ROLE_CUSTOMER,
    ROLE_MANAGER,
    ROLE_STOREKEEPER,
    InMemoryPrincipalProvider,
    Principal,
    has_permission,
    require_permission,
)


ALL_PERMISSIONS = (
    PERMISSION_POS_SELL,
    PERMISSION_ECOMMERCE_ORDER,
    PERMISSION_GOODS_RECEIVE,
    PERMISSION_PURCHASE_ORDER_CREATE,
    PERMISSION_ORDER_REFUND,
    PERMISSION_ORDER_STATUS,
    PERMISSION_COUPON_VALIDATE,
)


class TestPrincipal:
    def test_valid(self):
        principal = Principal(actor_id="cashier-1", role=ROLE_CASHIER)
        assert not principal.is_anonymous

    def test_unknown_role(self):
        with pytest.raises(ValueError, match="role"):
            Principal(actor_id="x", role="owner")

    def test_blank_actor(self):
        with pytest.raises(ValueError):
            Principal(actor_id="", role=ROLE_CASHIER)

    def test_anonymous_has_nothing(self):
        assert ANONYMOUS.is_anonymous
        assert not any(has_permission(ANONYMOUS, p) for p in ALL_PERMISSIONS)


class TestRoleGrants:
    def test_admin_has_everything(self):
        admin = Principal(actor_id="admin-1", role=ROLE_ADMIN)
        assert all(has_permission(admin, p) for p in ALL_PERMISSIONS)

    @pytest.mark.parametrize("role, allowed, denied", [
        (ROLE_CASHIER, PERMISSION_POS_SELL, PERMISSION_ORDER_REFUND),
        (ROLE_CUSTOMER, PERMISSION_ECOMMERCE_ORDER, PERMISSION_POS_SELL),
        (ROLE_STOREKEEPER, PERMISSION_GOODS_RECEIVE, PERMISSION_POS_SELL),
        (ROLE_MANAGER, PERMISSION_ORDER_REFUND, PERMISSION_ECOMMERCE_ORDER),
    ])
    def test_grants(self, role, allowed, denied):
        principal = Principal(actor_id=f"{role}-1", role=role)
        assert has_permission(principal, allowed)
        assert not has_permission(principal, denied)

    def test_require_permission_raises_with_details(self):
        cashier = Principal(actor_id="cashier-1", role=ROLE_CASHIER)
        require_permission(cashier, PERMISSION_POS_SELL)

        with pytest.raises(PermissionDeniedError) as excinfo:
            require_permission(cashier, PERMISSION_ORDER_REFUND)
        assert excinfo.value.details == {"actor_id": "cashier-1", "permission": PERMISSION_ORDER_REFUND}


class TestInMemoryPrincipalProvider:
    def test_from_settings(self):
        provider = InMemoryPrincipalProvider.from_settings({"key-1": ("till-3", ROLE_CASHIER)})
        principal = provider.resolve_api_key(" key-1 ")
        assert principal == Principal(actor_id="till-3", role=ROLE_CASHIER)

    def test_unknown_key(self):
        provider = InMemoryPrincipalProvider({"key-1": Principal(actor_id="a", role=ROLE_ADMIN)})
        assert provider.resolve_api_key("key-2") is None
        assert provider.resolve_api_key(None) is None

    def test_rejects_bad_entries(self):
        with pytest.raises(ValueError):
            InMemoryPrincipalProvider({"": Principal(actor_id="a", role=ROLE_ADMIN)})
        with pytest.raises(ValueError):
            InMemoryPrincipalProvider({"key": ("a", ROLE_ADMIN)})

    def test_settings_keys_resolve(self, settings):
        provider = InMemoryPrincipalProvider.from_settings(settings.FULFILLMENT["API_KEYS"])
        assert provider.resolve_api_key("dev-cashier-key").role == ROLE_CASHIER
