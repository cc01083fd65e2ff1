"""
Tests for core.primitives (money) and core.commands.rejection.
"""

from decimal import Decimal

import pytest

from core.commands.rejection import RejectionReason, first_rejection
from core.primitives import ZERO, money_sum, percent_of, to_decimal, to_money


# ── Money ────────────────────────────────────────────────────

class TestToDecimal:
    @pytest.mark.parametrize("value, expected", [
        ("12.345", Decimal("12.345")),
        (7, Decimal("7")),
        (Decimal("0.1"), Decimal("0.1")),
    ])
    def test_accepts_decimal_int_and_numeric_text(self, value, expected):
        assert to_decimal(value) == expected

    @pytest.mark.parametrize("value", [0.1, True, "abc", None, "NaN", "Infinity"])
    def test_rejects_everything_else(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)

    def test_error_names_the_field(self):
        with pytest.raises(ValueError, match="unitPrice"):
            to_decimal(1.5, field_name="unitPrice")


class TestToMoney:
    @pytest.mark.parametrize("value, expected", [
        ("10.005", "10.01"),
        ("10.004", "10.00"),
        ("-10.005", "-10.01"),
        (3, "3.00"),
    ])
    def test_rounds_half_up_to_cents(self, value, expected):
        assert to_money(value) == Decimal(expected)
        assert str(to_money(value)) == expected


class TestPercentOf:
    def test_quantized(self):
        assert percent_of(Decimal("999.99"), Decimal("7.5")) == Decimal("75.00")
        assert percent_of(Decimal("0.10"), Decimal("5")) == Decimal("0.01")

    def test_zero_rate(self):
        assert percent_of(Decimal("100.00"), Decimal("0")) == ZERO


class TestMoneySum:
    def test_empty_is_zero(self):
        assert money_sum([]) == Decimal("0.00")

    def test_sums_and_quantizes(self):
        assert money_sum([Decimal("0.10"), Decimal("0.20"), Decimal("0.005")]) == Decimal("0.31")


# ── RejectionReason ──────────────────────────────────────────

def _reject(code):
    def policy(value, **kwargs):
        return RejectionReason(code=code, message=f"{code} for {value}", policy_name=f"{code.lower()}_policy")
    return policy


def _allow(value, **kwargs):
    return None


class TestRejectionReason:
    def test_to_dict_includes_field_only_when_set(self):
        reason = RejectionReason(code="X", message="m", policy_name="p")
        assert reason.to_dict() == {"code": "X", "message": "m", "policy_name": "p"}
        with_field = RejectionReason(code="X", message="m", policy_name="p", field="addons")
        assert with_field.to_dict()["field"] == "addons"

    @pytest.mark.parametrize("fields", [
        {"code": "", "message": "m", "policy_name": "p"},
        {"code": "X", "message": "", "policy_name": "p"},
        {"code": "X", "message": "m", "policy_name": ""},
        {"code": "X", "message": "m", "policy_name": "p", "field": ""},
    ])
    def test_rejects_blank_parts(self, fields):
        with pytest.raises(ValueError):
            RejectionReason(**fields)

    def test_frozen(self):
        reason = RejectionReason(code="X", message="m", policy_name="p")
        with pytest.raises(AttributeError):
            reason.code = "Y"


class TestFirstRejection:
    def test_all_pass(self):
        assert first_rejection([_allow, _allow], "line") is None

    def test_first_failure_wins(self):
        rejection = first_rejection([_allow, _reject("A"), _reject("B")], "line", item=None)
        assert rejection.code == "A"
        assert rejection.message == "A for line"

    def test_no_policies(self):
        assert first_rejection([], "line") is None
