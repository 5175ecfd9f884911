"""Configurable fake payment gateway for development and testing.

This adapter simulates the provider without any external calls. It can be
configured at runtime to fail or to fail transiently a number of times,
replays the same authorization for a repeated idempotency key, and signs
Stripe-shaped events with HMAC-SHA256 over a shared secret so the webhook
path can be exercised end to end.
"""

import hashlib
import hmac
import json
from decimal import Decimal
from uuid import uuid4

from ordering.errors import GatewayError, GatewayUnavailableError
from payments.gateway.events import parse_event_document
from payments.gateway.port import Authorization, GatewayEvent, PaymentGateway


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, webhook_secret: str = "whsec_development") -> None:
        self.webhook_secret = webhook_secret
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.transient_failures: int = 0
        self.calls: list[dict] = []
        self.authorizations: dict[str, Authorization] = {}
        self.cancelled: list[str] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Card declined",
        transient_failures: int = 0,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.transient_failures = transient_failures

    def create_authorization(
        self,
        amount: Decimal,
        currency: str,
        idempotency_key: str,
        metadata: dict,
    ) -> Authorization:
        self.calls.append(
            {
                "method": "create_authorization",
                "amount": amount,
                "currency": currency,
                "idempotency_key": idempotency_key,
                "metadata": dict(metadata),
            }
        )

        if self.transient_failures > 0:
            self.transient_failures -= 1
            raise GatewayUnavailableError("Gateway timed out")
        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        if idempotency_key in self.authorizations:
            return self.authorizations[idempotency_key]

        reference = f"pi_fake_{uuid4().hex[:16]}"
        authorization = Authorization(
            reference=reference,
            client_secret=f"{reference}_secret_{uuid4().hex[:8]}",
            amount=amount,
            currency=currency,
            status="requires_payment_method",
        )
        self.authorizations[idempotency_key] = authorization
        return authorization

    def cancel_authorization(self, reference: str) -> None:
        self.calls.append({"method": "cancel_authorization", "reference": reference})
        self.cancelled.append(reference)

    # -------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------
    def sign(self, payload: bytes) -> str:
        return hmac.new(self.webhook_secret.encode(), payload, hashlib.sha256).hexdigest()

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        if not signature:
            return False
        return hmac.compare_digest(self.sign(payload), signature)

    def parse_event(self, payload: bytes) -> GatewayEvent:
        return parse_event_document(payload)

    def build_event(
        self,
        event_type: str,
        reference: str,
        metadata: dict | None = None,
        event_id: str | None = None,
        billing_details: dict | None = None,
    ) -> tuple[bytes, str]:
        """Build a signed Stripe-shaped event; returns ``(payload, signature)``."""
        obj = {"id": reference, "metadata": metadata or {}}
        if event_type.startswith("charge."):
            obj = {
                "id": f"ch_fake_{uuid4().hex[:16]}",
                "payment_intent": reference,
                "metadata": metadata or {},
            }
        if billing_details:
            obj["billing_details"] = billing_details

        document = {
            "id": event_id or f"evt_fake_{uuid4().hex[:16]}",
            "type": event_type,
            "data": {"object": obj},
        }
        payload = json.dumps(document).encode()
        return payload, self.sign(payload)
