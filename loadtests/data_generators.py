"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names expected by the API's pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()

SHIPPING_RATES = {"standard": "5.00", "express": "15.00", "pickup": "0.00"}


def guest_email() -> str:
    local = fake.user_name()[:20]
    return f"{local}.{uuid.uuid4().hex[:4]}@{fake.free_email_domain()}"


def address_data(email: str | None = None) -> dict:
    return {
        "name": fake.name(),
        "email": email,
        "street": fake.street_address(),
        "city": fake.city(),
        "state": fake.state_abbr(),
        "postal_code": fake.postcode(),
        "country": "US",
    }


def product_data(stock: int | None = None) -> dict:
    price = f"{random.randint(5, 200)}.{random.randint(0, 99):02d}"
    return {
        "sku": f"LT-{uuid.uuid4().hex[:10].upper()}",
        "name": fake.catch_phrase()[:100],
        "price": price,
        "stock": stock if stock is not None else random.randint(50, 500),
    }


def checkout_data(product_id: str, unit_price: str, quantity: int = 1, rate: str = "standard") -> dict:
    """Checkout payload whose claimed total matches the server's computation."""
    from decimal import Decimal

    email = guest_email()
    total = Decimal(unit_price) * quantity + Decimal(SHIPPING_RATES[rate])
    return {
        "items": [{"product_id": product_id, "quantity": quantity, "unit_price": unit_price}],
        "total": str(total),
        "shipping_address": address_data(email),
        "shipping_rate_id": rate,
        "email": email,
    }
