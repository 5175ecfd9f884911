"""Order notifier: customer emails for order lifecycle milestones.

Sending is fire-and-forget: it runs after the order change committed, and a
delivery failure is logged, never propagated into checkout or webhook
handling.
"""

from enum import Enum

import structlog

from notifications.channel import get_email_channel

logger = structlog.get_logger(__name__)


class OrderNotification(Enum):
    ORDER_CREATED = "order_created"
    ORDER_PAID = "order_paid"
    ORDER_CANCELLED = "order_cancelled"


_SUBJECTS = {
    OrderNotification.ORDER_CREATED: "We received your order {order_number}",
    OrderNotification.ORDER_PAID: "Payment confirmed for order {order_number}",
    OrderNotification.ORDER_CANCELLED: "Your order {order_number} was cancelled",
}

_BODIES = {
    OrderNotification.ORDER_CREATED: "Order {order_number} for {total} {currency} is awaiting payment.",
    OrderNotification.ORDER_PAID: "We received {total} {currency} for order {order_number}.",
    OrderNotification.ORDER_CANCELLED: "Order {order_number} was cancelled. No further action is needed.",
}


def order_snapshot(order) -> dict:
    """Plain-data view of an order, safe to hand to a background task."""
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "customer_email": order.customer_email,
        "total": str(order.total),
        "currency": order.currency,
        "status": order.status,
    }


def notify_order(kind: OrderNotification, snapshot: dict) -> dict | None:
    """Send the ``kind`` email for the order in ``snapshot``."""
    if not snapshot.get("customer_email"):
        logger.info(
            "order_notification_skipped",
            kind=kind.value,
            order_id=snapshot.get("order_id"),
            reason="no customer email",
        )
        return None

    try:
        result = get_email_channel().send(
            to=snapshot["customer_email"],
            subject=_SUBJECTS[kind].format(**snapshot),
            body=_BODIES[kind].format(**snapshot),
            reference=f"{snapshot['order_id']}:{kind.value}",
        )
    except Exception as exc:
        logger.error(
            "order_notification_failed",
            kind=kind.value,
            order_id=snapshot.get("order_id"),
            error=str(exc),
        )
        return None

    if result.get("status") != "sent":
        logger.warning(
            "order_notification_not_sent",
            kind=kind.value,
            order_id=snapshot.get("order_id"),
            error=result.get("error"),
        )
    return result
