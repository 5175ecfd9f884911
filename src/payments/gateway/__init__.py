"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (default)
- StripeGateway when ``PAYMENT_GATEWAY=stripe``
"""

from ordering.settings import load_settings
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def build_gateway(settings=None) -> PaymentGateway:
    settings = settings or load_settings()
    if settings.payment_gateway == "stripe":
        from payments.gateway.stripe_adapter import StripeGateway

        return StripeGateway(
            api_key=settings.stripe_api_key,
            webhook_secret=settings.webhook_secret,
            timeout=settings.gateway_timeout_seconds,
        )
    if settings.payment_gateway != "fake":
        raise ValueError(f"Unknown payment gateway: {settings.payment_gateway}")
    return FakeGateway(webhook_secret=settings.webhook_secret)


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, built from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
