"""Checkout and reconciliation load test scenarios.

CheckoutJourney walks one guest from stock seeding through checkout and a
signed "payment succeeded" webhook (delivered twice to exercise the ledger).
StockContentionUser has every user buy from one low-stock product so the
no-oversell property can be checked when the run ends.
"""

import hashlib
import hmac
import json
import os
import uuid

from locust import HttpUser, SequentialTaskSet, between, events, task

from loadtests.data_generators import checkout_data, product_data
from loadtests.helpers.response import error_code, extract_error_detail
from loadtests.helpers.state import CheckoutState, ContentionState

WEBHOOK_SECRET = os.getenv("PAYMENT_WEBHOOK_SECRET", "whsec_development")
CONTENTION_STOCK = int(os.getenv("LOADTEST_CONTENTION_STOCK", "20"))


def signed_event(event_type: str, reference: str, order_id: str) -> tuple[bytes, str]:
    """Stripe-shaped event signed the way the fake gateway verifies it."""
    document = {
        "id": f"evt_lt_{uuid.uuid4().hex[:16]}",
        "type": event_type,
        "data": {"object": {"id": reference, "metadata": {"order_id": order_id}}},
    }
    payload = json.dumps(document).encode()
    signature = hmac.new(WEBHOOK_SECRET.encode(), payload, hashlib.sha256).hexdigest()
    return payload, signature


class CheckoutJourney(SequentialTaskSet):
    """Seed Product -> Checkout -> Payment Succeeded webhook -> Redelivery -> Verify PAID."""

    def on_start(self):
        self.state = CheckoutState()
        self.event = None

    @task
    def seed_product(self):
        payload = product_data()
        with self.client.post(
            "/stock/products",
            json=payload,
            catch_response=True,
            name="POST /stock/products",
        ) as resp:
            if resp.status_code == 201:
                self.state.product_id = resp.json()["product_id"]
                self.state.unit_price = payload["price"]
            else:
                resp.failure(f"Seed product failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def checkout(self):
        with self.client.post(
            "/checkout",
            json=checkout_data(self.state.product_id, self.state.unit_price, quantity=2),
            catch_response=True,
            name="POST /checkout",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.order_number = body["order_number"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def fetch_payment_reference(self):
        with self.client.get(
            f"/orders/{self.state.order_id}",
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            if resp.status_code == 200:
                self.state.payment_reference = resp.json()["payment_reference"]
            else:
                resp.failure(f"Get order failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def payment_succeeded(self):
        self.event = signed_event("payment_intent.succeeded", self.state.payment_reference, self.state.order_id)
        self._deliver(expected="processed")

    @task
    def redeliver(self):
        self._deliver(expected="duplicate")

    @task
    def verify_paid(self):
        with self.client.get(
            f"/orders/{self.state.order_id}",
            catch_response=True,
            name="GET /orders/{id}",
        ) as resp:
            if resp.status_code != 200 or resp.json()["status"] != "Paid":
                resp.failure(f"Order not PAID after webhook: {resp.status_code}: {resp.text[:200]}")
        self.interrupt()

    def _deliver(self, expected: str):
        payload, signature = self.event
        with self.client.post(
            "/payments/webhook",
            data=payload,
            headers={"X-Gateway-Signature": signature, "Content-Type": "application/json"},
            catch_response=True,
            name="POST /payments/webhook",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Webhook failed: {resp.status_code}: {extract_error_detail(resp)}")
            elif resp.json()["status"] != expected:
                resp.failure(f"Webhook returned {resp.json()['status']}, expected {expected}")


class CheckoutUser(HttpUser):
    tasks = [CheckoutJourney]
    wait_time = between(0.5, 2)


# ---------------------------------------------------------------------------
# Stock contention
# ---------------------------------------------------------------------------
contention = ContentionState()


class StockContentionUser(HttpUser):
    """Every user checks out one unit of the same low-stock product."""

    wait_time = between(0.05, 0.2)

    def on_start(self):
        with contention.lock:
            if contention.product_id is None:
                payload = product_data(stock=CONTENTION_STOCK)
                resp = self.client.post("/stock/products", json=payload, name="POST /stock/products")
                resp.raise_for_status()
                contention.product_id = resp.json()["product_id"]
                contention.initial_stock = CONTENTION_STOCK
                self.unit_price = payload["price"]
                contention.unit_price = payload["price"]
        self.unit_price = contention.unit_price

    @task
    def buy_one(self):
        with self.client.post(
            "/checkout",
            json=checkout_data(contention.product_id, self.unit_price, quantity=1),
            catch_response=True,
            name="POST /checkout (contended)",
        ) as resp:
            if resp.status_code == 201:
                with contention.lock:
                    contention.accepted += 1
            elif resp.status_code == 409 and error_code(resp) in ("insufficient_stock", "stock_error"):
                with contention.lock:
                    contention.rejected += 1
                resp.success()
            else:
                resp.failure(f"Unexpected checkout result: {resp.status_code}: {extract_error_detail(resp)}")


@events.test_stop.add_listener
def check_no_oversell(environment, **_kwargs):
    """Fail the run if more units were sold than existed."""
    if contention.product_id is None:
        return
    print(
        f"[LOADTEST] Contention: {contention.accepted} accepted, {contention.rejected} rejected, "
        f"initial stock {contention.initial_stock}"
    )
    if contention.accepted > contention.initial_stock:
        print("[LOADTEST] OVERSELL DETECTED")
        environment.process_exit_code = 1
