"""Tests for the configurable fake payment gateway."""

import json
from decimal import Decimal

import pytest
from ordering.errors import GatewayError, GatewayUnavailableError
from ordering.settings import Settings
from payments.gateway import build_gateway, get_gateway, reset_gateway, set_gateway
from payments.gateway.fake_adapter import FakeGateway


@pytest.fixture()
def gateway():
    return FakeGateway(webhook_secret="whsec_unit")


def _authorize(gateway, key="order-1-authorization"):
    return gateway.create_authorization(
        amount=Decimal("55.00"), currency="USD", idempotency_key=key, metadata={"order_id": "1"}
    )


class TestAuthorizations:
    def test_create(self, gateway):
        authorization = _authorize(gateway)
        assert authorization.reference.startswith("pi_fake_")
        assert authorization.amount == Decimal("55.00")
        assert gateway.calls[0]["metadata"] == {"order_id": "1"}

    def test_same_key_returns_same_authorization(self, gateway):
        assert _authorize(gateway) == _authorize(gateway)
        assert len(gateway.authorizations) == 1

    def test_different_keys(self, gateway):
        assert _authorize(gateway, "a").reference != _authorize(gateway, "b").reference

    def test_decline(self, gateway):
        gateway.configure(should_succeed=False, failure_reason="Insufficient funds")
        with pytest.raises(GatewayError, match="Insufficient funds"):
            _authorize(gateway)

    def test_transient_failures_then_success(self, gateway):
        gateway.configure(transient_failures=1)
        with pytest.raises(GatewayUnavailableError):
            _authorize(gateway)
        assert _authorize(gateway).reference

    def test_cancel(self, gateway):
        reference = _authorize(gateway).reference
        gateway.cancel_authorization(reference)
        assert gateway.cancelled == [reference]


class TestWebhookSigning:
    def test_built_event_verifies(self, gateway):
        payload, signature = gateway.build_event("payment_intent.succeeded", "pi_1", metadata={"order_id": "1"})
        assert gateway.verify_webhook_signature(payload, signature)

    def test_tampered_payload_fails(self, gateway):
        payload, signature = gateway.build_event("payment_intent.succeeded", "pi_1")
        assert not gateway.verify_webhook_signature(payload.replace(b"pi_1", b"pi_2"), signature)

    def test_other_secret_fails(self, gateway):
        payload, signature = FakeGateway(webhook_secret="whsec_other").build_event("payment_intent.succeeded", "pi_1")
        assert not gateway.verify_webhook_signature(payload, signature)

    def test_empty_signature_fails(self, gateway):
        payload, _ = gateway.build_event("payment_intent.succeeded", "pi_1")
        assert not gateway.verify_webhook_signature(payload, "")

    def test_charge_event_shape(self, gateway):
        payload, _ = gateway.build_event("charge.succeeded", "pi_1", event_id="evt_c")
        document = json.loads(payload)
        assert document["id"] == "evt_c"
        assert document["data"]["object"]["payment_intent"] == "pi_1"
        assert gateway.parse_event(payload).payment_reference == "pi_1"


class TestFactory:
    def test_default_is_fake(self):
        reset_gateway()
        assert isinstance(get_gateway(), FakeGateway)

    def test_get_is_a_singleton(self):
        assert get_gateway() is get_gateway()

    def test_set_gateway(self, gateway):
        set_gateway(gateway)
        assert get_gateway() is gateway

    def test_build_stripe(self):
        from payments.gateway.stripe_adapter import StripeGateway

        built = build_gateway(Settings(payment_gateway="stripe", stripe_api_key="sk_test_1"))
        assert isinstance(built, StripeGateway)

    def test_unknown_gateway(self):
        with pytest.raises(ValueError):
            build_gateway(Settings(payment_gateway="carrier-pigeon"))
