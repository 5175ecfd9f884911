"""Integration tests for Order API endpoints via TestClient."""

import pytest
from ordering.order.order import Order, OrderStatus
from protean import current_domain


@pytest.fixture()
def order_id(client, register_product, checkout_body):
    product_id = register_product(stock=10)
    return client.post("/checkout", json=checkout_body(product_id)).json()["order_id"]


def _pay(order_id):
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    order.mark_paid()
    repo.add(order)


class TestGetOrder:
    def test_order_view(self, client, order_id):
        response = client.get(f"/orders/{order_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["order_id"] == order_id
        assert data["status"] == OrderStatus.PENDING.value
        assert data["total"] == "55.00"
        assert data["payment_reference"].startswith("pi_fake_")
        assert data["items"][0]["quantity"] == 2
        assert data["shipping_address"]["city"] == "London"
        assert data["needs_reconciliation"] is False

    def test_unknown_order_is_404(self, client):
        assert client.get("/orders/does-not-exist").status_code == 404


class TestFulfillmentEndpoints:
    def test_paid_order_through_delivery(self, client, order_id):
        _pay(order_id)
        assert client.put(f"/orders/{order_id}/processing").json() == {"status": "processing"}
        assert client.put(f"/orders/{order_id}/ship").json() == {"status": "shipped"}
        assert client.put(f"/orders/{order_id}/deliver").json() == {"status": "delivered"}
        assert client.get(f"/orders/{order_id}").json()["status"] == OrderStatus.DELIVERED.value

    def test_shipping_unpaid_order_is_409(self, client, order_id):
        response = client.put(f"/orders/{order_id}/ship")
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"


class TestCancelEndpoint:
    def test_cancel_pending_order(self, client, order_id, fake_email):
        response = client.put(f"/orders/{order_id}/cancel", json={"reason": "Changed mind"})

        assert response.status_code == 200
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.CANCELLED.value
        assert order.stock_released is True
        assert len(fake_email.sent_for(f"{order_id}:order_cancelled")) == 1

    def test_cancel_requires_reason(self, client, order_id):
        response = client.put(f"/orders/{order_id}/cancel", json={"reason": ""})
        assert response.status_code == 400

    def test_cancel_shipped_order_is_409(self, client, order_id):
        _pay(order_id)
        client.put(f"/orders/{order_id}/processing")
        client.put(f"/orders/{order_id}/ship")

        response = client.put(f"/orders/{order_id}/cancel", json={"reason": "late"})
        assert response.status_code == 409

    def test_cancel_processing_order_is_409(self, client, order_id):
        _pay(order_id)
        client.put(f"/orders/{order_id}/processing")

        response = client.put(f"/orders/{order_id}/cancel", json={"reason": "changed mind"})

        assert response.status_code == 409
        assert response.json()["field"] == "status"
        assert client.get(f"/orders/{order_id}").json()["status"] == OrderStatus.PROCESSING.value

    def test_restore_stock_after_release_is_400(self, client, order_id):
        client.put(f"/orders/{order_id}/cancel", json={"reason": "x"})
        response = client.put(f"/orders/{order_id}/restore-stock")
        assert response.status_code == 400
