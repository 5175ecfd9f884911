"""Order resolution for payment events.

Events reach us before, during or after the checkout transaction commits, so
the order is looked up by an explicit ordered strategy:

    1. ``order_id`` from the authorization metadata
    2. the authorization reference against ``Order.payment_reference``
    3. ``order_number`` from the metadata

Each miss is logged under its own event name. When every strategy misses the
whole sequence is retried with exponential backoff before giving up with a
retryable ``OrderResolutionError``, so the provider redelivers later.
"""

import time

import structlog
from protean.utils.globals import current_domain

from ordering.errors import OrderResolutionError
from ordering.order.order import Order
from ordering.utils.retry import backoff_delay
from payments.gateway.port import GatewayEvent

logger = structlog.get_logger(__name__)


class OrderResolver:
    def __init__(self, max_attempts: int = 4, backoff: float = 0.25, sleep=time.sleep):
        self.max_attempts = max(1, max_attempts)
        self.backoff = backoff
        self.sleep = sleep

    def resolve(self, event: GatewayEvent) -> str:
        """Return the id of the order ``event`` belongs to."""
        for attempt in range(1, self.max_attempts + 1):
            order = self.find_order(event)
            if order is not None:
                return str(order.id)

            if attempt < self.max_attempts:
                delay = backoff_delay(attempt, self.backoff)
                logger.info(
                    "order_resolution_retry",
                    event_id=event.event_id,
                    attempt=attempt,
                    delay=delay,
                )
                self.sleep(delay)

        logger.warning(
            "order_resolution_failed",
            event_id=event.event_id,
            event_type=event.event_type,
            payment_reference=event.payment_reference,
            order_id=event.order_id,
            order_number=event.order_number,
        )
        raise OrderResolutionError(f"No order found for event {event.event_id}")

    def find_order(self, event: GatewayEvent) -> Order | None:
        repo = current_domain.repository_for(Order)
        log = logger.bind(event_id=event.event_id)

        if event.order_id:
            order = repo.find(event.order_id)
            if order is not None:
                log.debug("order_resolved_by_metadata_id", order_id=str(order.id))
                return order
            log.info("order_lookup_by_metadata_id_missed", order_id=event.order_id)

        if event.payment_reference:
            order = repo.find_by_payment_reference(event.payment_reference)
            if order is not None:
                log.debug("order_resolved_by_payment_reference", order_id=str(order.id))
                return order
            log.info("order_lookup_by_payment_reference_missed", payment_reference=event.payment_reference)

        if event.order_number:
            order = repo.find_by_number(event.order_number)
            if order is not None:
                log.debug("order_resolved_by_order_number", order_id=str(order.id))
                return order
            log.info("order_lookup_by_order_number_missed", order_number=event.order_number)

        return None
