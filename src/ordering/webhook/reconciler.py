"""Webhook reconciliation: folding payment-provider events into order state.

Providers deliver at least once, possibly out of order and concurrently.
``WebhookReconciler.process`` verifies the signature before touching the
payload, short-circuits events already in the ledger, resolves the order,
and applies the event exactly once through ``ApplyPaymentEvent``.
Notifications go out only for real status changes, after commit.
"""

import json
import time
from dataclasses import dataclass
from enum import Enum

import structlog
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.utils.globals import current_domain

from notifications.notifier import OrderNotification, notify_order, order_snapshot
from ordering.errors import SignatureError
from ordering.order.order import Order, OrderStatus
from ordering.settings import load_settings
from ordering.webhook.application import ApplyPaymentEvent, billing_address_from
from ordering.webhook.ledger import LedgerOutcome, ProcessedEvent
from ordering.webhook.resolution import OrderResolver
from payments.gateway import get_gateway
from payments.gateway.port import EventKind, GatewayEvent

logger = structlog.get_logger(__name__)


class WebhookStatus(Enum):
    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    SKIPPED = "skipped"


_STATUS_FOR_OUTCOME = {
    LedgerOutcome.APPLIED: WebhookStatus.PROCESSED,
    LedgerOutcome.REFERENCE_RECORDED: WebhookStatus.PROCESSED,
    LedgerOutcome.FLAGGED: WebhookStatus.PROCESSED,
    LedgerOutcome.NOOP: WebhookStatus.SKIPPED,
    LedgerOutcome.IGNORED: WebhookStatus.IGNORED,
}

_NOTIFICATION_FOR_STATUS = {
    OrderStatus.PAID.value: OrderNotification.ORDER_PAID,
    OrderStatus.CANCELLED.value: OrderNotification.ORDER_CANCELLED,
}


@dataclass(frozen=True)
class WebhookResult:
    status: WebhookStatus
    event_id: str
    order_id: str | None = None
    order_status: str | None = None


def _run_now(fn, *args):
    fn(*args)


class WebhookReconciler:
    """Verifies, de-duplicates and applies payment events.

    Args:
        gateway: Verifies signatures and parses payloads; defaults to ``get_gateway()``.
        settings: Resolution and retry budgets; defaults to ``load_settings()``.
        sleep: Backoff sleep function (injectable for tests).
        defer: Schedules notifications, e.g. ``BackgroundTasks.add_task``.
    """

    def __init__(self, gateway=None, settings=None, sleep=time.sleep, defer=None):
        self.gateway = gateway or get_gateway()
        self.settings = settings or load_settings()
        self.resolver = OrderResolver(
            max_attempts=self.settings.resolution_max_attempts,
            backoff=self.settings.resolution_backoff_seconds,
            sleep=sleep,
        )
        self.defer = defer or _run_now

    def process(self, payload: bytes, signature: str | None) -> WebhookResult:
        if not signature or not self.gateway.verify_webhook_signature(payload, signature):
            logger.warning("webhook_signature_invalid", has_signature=bool(signature))
            raise SignatureError("Webhook signature verification failed")

        event = self.gateway.parse_event(payload)
        log = logger.bind(event_id=event.event_id, event_type=event.event_type)

        ledger = current_domain.repository_for(ProcessedEvent)
        if ledger.is_processed(event.event_id):
            log.info("webhook_duplicate")
            return WebhookResult(WebhookStatus.DUPLICATE, event.event_id)

        order_id = None
        if event.kind != EventKind.UNKNOWN:
            order_id = self.resolver.resolve(event)

        result = self._apply(event, order_id)
        if result.get("duplicate"):
            log.info("webhook_duplicate", order_id=order_id)
            return WebhookResult(WebhookStatus.DUPLICATE, event.event_id, order_id=order_id)

        outcome = LedgerOutcome(result["outcome"])
        status = _STATUS_FOR_OUTCOME[outcome]
        log.info("webhook_processed", order_id=order_id, outcome=outcome.value, status=status.value)

        if outcome == LedgerOutcome.APPLIED and result["status"] != result["previous_status"]:
            self._notify(order_id, result["status"])

        return WebhookResult(status, event.event_id, order_id=order_id, order_status=result.get("status"))

    def _apply(self, event: GatewayEvent, order_id: str | None) -> dict:
        billing = billing_address_from(event.billing)
        command = ApplyPaymentEvent(
            event_id=event.event_id,
            event_type=event.event_type,
            kind=event.kind.value,
            order_id=order_id,
            payment_reference=event.payment_reference,
            billing_address=json.dumps(billing.to_dict()) if billing else None,
        )

        ledger = current_domain.repository_for(ProcessedEvent)
        attempts = max(1, self.settings.placement_max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                return current_domain.process(command, asynchronous=False)
            except (ExpectedVersionError, ValidationError) as exc:
                # A concurrent delivery of the same event may have won the ledger row.
                if ledger.is_processed(event.event_id):
                    return {"outcome": None, "duplicate": True}
                if not isinstance(exc, ExpectedVersionError) or attempt == attempts:
                    raise
                logger.warning(
                    "payment_event_conflict",
                    event_id=event.event_id,
                    order_id=order_id,
                    attempt=attempt,
                )

    def _notify(self, order_id: str, status: str) -> None:
        kind = _NOTIFICATION_FOR_STATUS.get(status)
        if kind is None:
            return
        order = current_domain.repository_for(Order).get(order_id)
        self.defer(notify_order, kind, order_snapshot(order))
