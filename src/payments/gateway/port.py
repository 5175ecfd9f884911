"""Payment gateway port (abstract interface).

Defines the contract every payment gateway adapter implements: creating and
cancelling a payment authorization, and verifying and parsing the signed
events the provider sends back. Swapping FakeGateway (dev/test) for
StripeGateway (production) changes no checkout or reconciliation code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class EventKind(Enum):
    """Provider-independent meaning of a payment event."""

    AUTHORIZATION_CREATED = "authorization_created"
    AUTHORIZATION_SUCCEEDED = "authorization_succeeded"
    CHARGE_SUCCEEDED = "charge_succeeded"
    AUTHORIZATION_FAILED = "authorization_failed"
    AUTHORIZATION_CANCELLED = "authorization_cancelled"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Authorization:
    """A payment authorization created at the provider."""

    reference: str
    client_secret: str | None
    amount: Decimal
    currency: str
    status: str | None = None


@dataclass(frozen=True)
class BillingDetails:
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None

    @property
    def is_complete(self) -> bool:
        """True when the details make a usable postal address."""
        return all((self.street, self.city, self.postal_code, self.country))


@dataclass(frozen=True)
class GatewayEvent:
    """A verified, parsed payment event."""

    event_id: str
    kind: EventKind
    event_type: str
    payment_reference: str | None = None
    metadata: dict = field(default_factory=dict)
    billing: BillingDetails | None = None

    @property
    def order_id(self) -> str | None:
        return self.metadata.get("order_id") or None

    @property
    def order_number(self) -> str | None:
        return self.metadata.get("order_number") or None


class PaymentGateway(ABC):
    """Abstract payment gateway interface.

    Adapters raise ``GatewayUnavailableError`` for transient failures
    (timeouts, connection errors, rate limiting) and ``GatewayError`` for
    everything else the provider rejects.
    """

    @abstractmethod
    def create_authorization(
        self,
        amount: Decimal,
        currency: str,
        idempotency_key: str,
        metadata: dict,
    ) -> Authorization:
        """Create a payment authorization; repeated keys return the same authorization."""
        ...

    @abstractmethod
    def cancel_authorization(self, reference: str) -> None:
        """Cancel a dangling authorization (best effort during compensation)."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...

    @abstractmethod
    def parse_event(self, payload: bytes) -> GatewayEvent:
        """Parse a verified payload; raises ``MalformedEventError``."""
        ...
