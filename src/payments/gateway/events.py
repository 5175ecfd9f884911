"""Translation of Stripe-shaped event documents into ``GatewayEvent``.

Both adapters speak the Stripe event format (the fake gateway emits the same
shape), so the mapping lives here once.
"""

import json

import structlog

from ordering.errors import MalformedEventError
from payments.gateway.port import BillingDetails, EventKind, GatewayEvent

logger = structlog.get_logger(__name__)

EVENT_KINDS = {
    "payment_intent.created": EventKind.AUTHORIZATION_CREATED,
    "payment_intent.succeeded": EventKind.AUTHORIZATION_SUCCEEDED,
    "charge.succeeded": EventKind.CHARGE_SUCCEEDED,
    "payment_intent.payment_failed": EventKind.AUTHORIZATION_FAILED,
    "payment_intent.canceled": EventKind.AUTHORIZATION_CANCELLED,
}

# Success events of flows checkout never starts (hosted Checkout Sessions).
# They are acknowledged as unknown, so a warning marks each one.
UNSUPPORTED_SUCCESS_TYPES = frozenset({"checkout.session.completed", "checkout.session.async_payment_succeeded"})


def _billing_from(obj: dict) -> BillingDetails | None:
    details = obj.get("billing_details")
    if not details:
        latest_charge = obj.get("latest_charge")
        if isinstance(latest_charge, dict):
            details = latest_charge.get("billing_details")
    if not details:
        return None

    address = details.get("address") or {}
    return BillingDetails(
        name=details.get("name"),
        email=details.get("email"),
        phone=details.get("phone"),
        street=address.get("line1"),
        city=address.get("city"),
        state=address.get("state"),
        postal_code=address.get("postal_code"),
        country=address.get("country"),
    )


def parse_event_document(payload) -> GatewayEvent:
    """Build a GatewayEvent from raw JSON bytes/str or an already-decoded dict."""
    if isinstance(payload, dict):
        document = payload
    else:
        try:
            document = json.loads(payload)
        except (TypeError, ValueError) as exc:
            raise MalformedEventError(f"Event payload is not valid JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise MalformedEventError("Event payload must be a JSON object")

    event_id = document.get("id")
    event_type = document.get("type")
    if not event_id or not event_type:
        raise MalformedEventError("Event payload is missing id or type")

    obj = (document.get("data") or {}).get("object")
    if not isinstance(obj, dict):
        raise MalformedEventError("Event payload is missing data.object", field="data")

    kind = EVENT_KINDS.get(event_type, EventKind.UNKNOWN)
    if event_type in UNSUPPORTED_SUCCESS_TYPES:
        logger.warning("payment_flow_unsupported", event_id=str(event_id), event_type=event_type)
    if kind == EventKind.CHARGE_SUCCEEDED:
        reference = obj.get("payment_intent")
    else:
        reference = obj.get("id")

    metadata = obj.get("metadata") or {}
    return GatewayEvent(
        event_id=str(event_id),
        kind=kind,
        event_type=event_type,
        payment_reference=reference,
        metadata={str(k): str(v) for k, v in metadata.items()},
        billing=_billing_from(obj),
    )
