"""Stripe payment gateway adapter.

Uses the stripe-python SDK: authorizations are PaymentIntents created with an
idempotency key, and webhook payloads are verified with
``stripe.Webhook.construct_event`` against the endpoint signing secret.
"""

from decimal import Decimal

import stripe
import structlog

from ordering.errors import GatewayError, GatewayUnavailableError
from ordering.shared.money import to_cents
from payments.gateway.events import parse_event_document
from payments.gateway.port import Authorization, GatewayEvent, PaymentGateway

logger = structlog.get_logger(__name__)

_TRANSIENT_ERRORS = (stripe.APIConnectionError, stripe.RateLimitError)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, webhook_secret: str, timeout: float = 10.0) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.timeout = timeout
        # Retries are driven by the orchestrator with a stable idempotency key.
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    def create_authorization(
        self,
        amount: Decimal,
        currency: str,
        idempotency_key: str,
        metadata: dict,
    ) -> Authorization:
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_cents(amount),
                currency=currency.lower(),
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
                idempotency_key=idempotency_key,
                api_key=self.api_key,
            )
        except _TRANSIENT_ERRORS as exc:
            raise GatewayUnavailableError(f"Stripe unavailable: {exc.user_message or exc}") from exc
        except stripe.StripeError as exc:
            raise GatewayError(f"Stripe rejected the authorization: {exc.user_message or exc}") from exc

        return Authorization(
            reference=intent["id"],
            client_secret=intent["client_secret"],
            amount=amount,
            currency=currency,
            status=intent["status"],
        )

    def cancel_authorization(self, reference: str) -> None:
        try:
            stripe.PaymentIntent.cancel(reference, api_key=self.api_key)
        except _TRANSIENT_ERRORS as exc:
            raise GatewayUnavailableError(f"Stripe unavailable: {exc}") from exc
        except stripe.StripeError as exc:
            raise GatewayError(f"Could not cancel {reference}: {exc}") from exc

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as exc:
            logger.warning("stripe_signature_rejected", error=str(exc))
            return False
        except ValueError as exc:
            logger.warning("stripe_signature_unreadable_payload", error=str(exc))
            return False
        return True

    def parse_event(self, payload: bytes) -> GatewayEvent:
        return parse_event_document(payload)
