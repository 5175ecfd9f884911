from decimal import Decimal

import pytest
from ordering.checkout.shipping import SHIPPING_RATES, shipping_rate
from protean.exceptions import ValidationError


def test_known_rates():
    assert shipping_rate("standard").amount == Decimal("5.00")
    assert shipping_rate("express").amount == Decimal("15.00")
    assert shipping_rate("pickup").amount == Decimal("0.00")
    assert set(SHIPPING_RATES) == {"standard", "express", "pickup"}


def test_unknown_rate():
    with pytest.raises(ValidationError) as exc:
        shipping_rate("teleport")
    assert "shipping_rate_id" in exc.value.messages
