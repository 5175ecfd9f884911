"""Domain events for the Order aggregate.

Events are versioned, immutable facts recorded alongside the state change
that produced them.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A validated cart became a PENDING order and its stock was taken."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    item_count = Integer(required=True)
    total_cents = Integer(required=True)
    currency = String(default="USD")
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentReferenceRecorded:
    """The gateway authorization reference was attached to the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_reference = String(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    payment_reference = String()
    total_cents = Integer(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class BillingAddressRecorded:
    """Billing details reported by the payment provider were stored."""

    __version__ = 1

    order_id = Identifier(required=True)
    city = String()
    postal_code = String()
    country = String()


@ordering.event(part_of="Order")
class OrderFlaggedForReconciliation:
    """The order needs an operator: compensation failed or money arrived late."""

    __version__ = 1

    order_id = Identifier(required=True)
    note = Text(required=True)


@ordering.event(part_of="Order")
class OrderProcessing:
    __version__ = 1

    order_id = Identifier(required=True)
    started_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderShipped:
    __version__ = 1

    order_id = Identifier(required=True)
    shipped_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled and its stock released."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)
