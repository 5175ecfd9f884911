"""Shipping rate table."""

from dataclasses import dataclass
from decimal import Decimal

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class ShippingRate:
    id: str
    label: str
    amount: Decimal


SHIPPING_RATES = {
    "standard": ShippingRate("standard", "Standard (5-7 business days)", Decimal("5.00")),
    "express": ShippingRate("express", "Express (1-2 business days)", Decimal("15.00")),
    "pickup": ShippingRate("pickup", "In-store pickup", Decimal("0.00")),
}


def shipping_rate(rate_id: str) -> ShippingRate:
    try:
        return SHIPPING_RATES[rate_id]
    except KeyError:
        raise ValidationError(
            {"shipping_rate_id": [f"Unknown shipping rate {rate_id!r}; expected one of {sorted(SHIPPING_RATES)}"]}
        ) from None
