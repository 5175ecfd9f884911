"""Tests for fixed-point money helpers."""

from decimal import Decimal

import pytest
from ordering.shared.money import from_cents, to_cents, to_money


class TestToMoney:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("10", Decimal("10.00")),
            ("10.5", Decimal("10.50")),
            (Decimal("0.105"), Decimal("0.11")),
            (7, Decimal("7.00")),
        ],
    )
    def test_quantizes_to_cents(self, value, expected):
        assert to_money(value) == expected

    def test_float_is_rejected(self):
        with pytest.raises(TypeError):
            to_money(10.5)

    def test_bool_is_rejected(self):
        with pytest.raises(TypeError):
            to_money(True)

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity"])
    def test_non_numeric_is_rejected(self, value):
        with pytest.raises(ValueError):
            to_money(value)


class TestCents:
    def test_to_cents(self):
        assert to_cents("19.99") == 1999
        assert to_cents(Decimal("0.01")) == 1

    def test_from_cents(self):
        assert from_cents(1999) == Decimal("19.99")
        assert from_cents(None) == Decimal("0.00")

    def test_sum_of_cents_is_exact(self):
        # 0.1 + 0.2 drifts in binary floating point; cents never do
        assert from_cents(to_cents("0.10") + to_cents("0.20")) == Decimal("0.30")
