import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import checkout_router, order_router, payment_router, stock_router
from ordering.api.errors import register_error_handlers


@pytest.fixture()
def client(fake_gateway, fake_email, monkeypatch):
    monkeypatch.setenv("GATEWAY_BACKOFF_SECONDS", "0")
    monkeypatch.setenv("WEBHOOK_RESOLUTION_BACKOFF_SECONDS", "0")
    monkeypatch.setenv("COMPENSATION_BACKOFF_SECONDS", "0")
    monkeypatch.setenv("PAYMENT_WEBHOOK_SECRET", "whsec_test")

    app = FastAPI()
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(payment_router)
    app.include_router(stock_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def register_product(client):
    """POST /stock/products and return the new product id."""

    def _register(price="25.00", stock=10, sku="MUG-001", name="Mug"):
        response = client.post(
            "/stock/products",
            json={"sku": sku, "name": name, "price": price, "stock": stock},
        )
        assert response.status_code == 201
        return response.json()["product_id"]

    return _register


@pytest.fixture()
def checkout_body(shipping_address):
    def _body(product_id, quantity=2, unit_price="25.00", total="55.00", **overrides):
        body = {
            "items": [{"product_id": product_id, "quantity": quantity, "unit_price": unit_price}],
            "total": total,
            "shipping_address": shipping_address,
            "shipping_rate_id": "standard",
        }
        body.update(overrides)
        return body

    return _body
