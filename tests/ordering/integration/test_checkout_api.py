"""Integration tests for POST /checkout via TestClient."""

import asyncio
from decimal import Decimal

from ordering.checkout.orchestrator import CheckoutOrchestrator
from ordering.order.order import Order, OrderStatus
from protean import current_domain


def _event_loop_running():
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class TestCheckoutEndpoint:
    def test_checkout_returns_payment_handle(self, client, register_product, checkout_body):
        product_id = register_product()
        response = client.post("/checkout", json=checkout_body(product_id))

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["total"]) == Decimal("55.00")
        assert data["client_secret"]
        order = current_domain.repository_for(Order).get(data["order_id"])
        assert order.status == OrderStatus.PENDING.value
        assert order.order_number == data["order_number"]

    def test_stock_is_reserved(self, client, register_product, checkout_body):
        product_id = register_product(stock=10)
        client.post("/checkout", json=checkout_body(product_id))
        assert client.get(f"/stock/products/{product_id}").json()["stock"] == 8

    def test_order_created_email_is_sent(self, client, register_product, checkout_body, fake_email):
        product_id = register_product()
        order_id = client.post("/checkout", json=checkout_body(product_id)).json()["order_id"]
        assert len(fake_email.sent_for(f"{order_id}:order_created")) == 1

    def test_checkout_runs_off_the_event_loop(self, client, register_product, checkout_body, monkeypatch):
        seen = []
        original = CheckoutOrchestrator.checkout

        def _checkout(self, request):
            seen.append(_event_loop_running())
            return original(self, request)

        monkeypatch.setattr(CheckoutOrchestrator, "checkout", _checkout)
        product_id = register_product()

        assert client.post("/checkout", json=checkout_body(product_id)).status_code == 201
        assert seen == [False]


class TestCheckoutErrors:
    def test_total_mismatch_is_409(self, client, register_product, checkout_body):
        product_id = register_product()
        response = client.post("/checkout", json=checkout_body(product_id, total="54.00"))

        assert response.status_code == 409
        assert response.json()["error"] == "total_mismatch"
        assert response.json()["field"] == "total"

    def test_stale_price_names_the_line(self, client, register_product, checkout_body):
        product_id = register_product(price="30.00")
        response = client.post("/checkout", json=checkout_body(product_id))

        assert response.status_code == 409
        assert response.json()["field"] == "unit_price"
        assert response.json()["line"] == 0

    def test_insufficient_stock_is_409(self, client, register_product, checkout_body):
        product_id = register_product(stock=1)
        response = client.post("/checkout", json=checkout_body(product_id))

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "insufficient_stock"
        assert body["line"] == 0

    def test_unknown_product_is_409(self, client, checkout_body):
        response = client.post("/checkout", json=checkout_body("no-such-product"))
        assert response.status_code == 409
        assert response.json()["error"] == "product_not_found"

    def test_empty_cart_is_400(self, client, checkout_body):
        body = checkout_body("p")
        body["items"] = []
        response = client.post("/checkout", json=body)
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_sub_cent_price_is_400(self, client, register_product, checkout_body):
        product_id = register_product()
        response = client.post("/checkout", json=checkout_body(product_id, unit_price="25.001"))
        assert response.status_code == 400

    def test_unknown_shipping_rate_is_400(self, client, register_product, checkout_body):
        product_id = register_product()
        response = client.post("/checkout", json=checkout_body(product_id, shipping_rate_id="drone"))
        assert response.status_code == 400
        assert response.json()["field"] == "shipping_rate_id"

    def test_guest_without_email_is_400(self, client, register_product, checkout_body, shipping_address):
        product_id = register_product()
        address = dict(shipping_address, email=None)
        response = client.post("/checkout", json=checkout_body(product_id, shipping_address=address))
        assert response.status_code == 400
        assert response.json()["field"] == "email"

    def test_declined_payment_is_502_and_rolled_back(self, client, register_product, checkout_body, fake_gateway):
        fake_gateway.configure(should_succeed=False, failure_reason="Card declined")
        product_id = register_product(stock=10)

        response = client.post("/checkout", json=checkout_body(product_id))

        assert response.status_code == 502
        assert response.json()["error"] == "gateway_error"
        assert client.get(f"/stock/products/{product_id}").json()["stock"] == 10
        assert current_domain.repository_for(Order)._dao.query.all().total == 0

    def test_gateway_timeout_is_502(self, client, register_product, checkout_body, fake_gateway):
        fake_gateway.configure(transient_failures=10)
        product_id = register_product()
        response = client.post("/checkout", json=checkout_body(product_id))
        assert response.status_code == 502
        assert response.json()["error"] == "gateway_unavailable"
