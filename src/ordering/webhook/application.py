"""Applying a payment event to an order: command and handler.

One unit of work re-checks the ledger, decides the outcome from the
transition table, mutates the order (releasing stock on cancellation) and
appends the ProcessedEvent. A concurrent delivery of the same event loses on
the ledger row and is reported as a duplicate by the reconciler.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Address, Order, OrderStatus
from ordering.order.stock import release_order_stock
from ordering.webhook.ledger import LedgerOutcome, ProcessedEvent
from ordering.webhook.transitions import SUCCESS_KINDS, decide
from payments.gateway.port import EventKind

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class ApplyPaymentEvent:
    event_id = Identifier(required=True)
    event_type = String(required=True, max_length=100)
    kind = String(required=True, max_length=50)  # EventKind value
    order_id = Identifier()  # Absent for ignored event kinds
    payment_reference = String(max_length=255)
    billing_address = Text()  # JSON: address dict from provider billing details


def billing_address_from(billing) -> Address | None:
    """Address built from provider billing details, or None if they are incomplete."""
    if billing is None or not billing.is_complete:
        return None
    return Address(
        name=billing.name,
        email=billing.email,
        phone=billing.phone,
        street=billing.street,
        city=billing.city,
        state=billing.state,
        postal_code=billing.postal_code,
        country=billing.country,
    )


def upsert_billing(order: Order, billing_address) -> bool:
    """Shared billing-address routine used by every success event."""
    if not billing_address:
        return False
    data = json.loads(billing_address) if isinstance(billing_address, str) else billing_address
    return order.upsert_billing_address(Address(**data))


@ordering.command_handler(part_of=Order)
class ApplyPaymentEventHandler:
    @handle(ApplyPaymentEvent)
    def apply_payment_event(self, command):
        ledger = current_domain.repository_for(ProcessedEvent)
        if ledger.is_processed(command.event_id):
            return {"outcome": None, "duplicate": True}

        kind = EventKind(command.kind)
        if kind == EventKind.UNKNOWN:
            ledger.add(ProcessedEvent.record(command.event_id, command.event_type, LedgerOutcome.IGNORED))
            return {"outcome": LedgerOutcome.IGNORED.value, "duplicate": False}

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.current_status
        decision = decide(kind, previous)

        if decision.outcome == LedgerOutcome.APPLIED:
            if decision.target == OrderStatus.PAID:
                order.mark_paid(payment_reference=command.payment_reference)
            elif decision.target == OrderStatus.CANCELLED:
                order.cancel(reason=f"Payment {command.event_type}")
                if not order.stock_released:
                    release_order_stock(order)
        elif decision.outcome == LedgerOutcome.REFERENCE_RECORDED:
            if command.payment_reference and not order.payment_reference:
                order.record_payment_reference(command.payment_reference)
        elif decision.outcome == LedgerOutcome.FLAGGED:
            order.flag_for_reconciliation(f"{decision.note} (event {command.event_id})")

        if kind in SUCCESS_KINDS and decision.outcome != LedgerOutcome.FLAGGED:
            upsert_billing(order, command.billing_address)

        repo.add(order)
        ledger.add(
            ProcessedEvent.record(
                command.event_id,
                command.event_type,
                decision.outcome,
                order_id=command.order_id,
            )
        )

        logger.info(
            "payment_event_applied",
            event_id=command.event_id,
            event_type=command.event_type,
            order_id=command.order_id,
            outcome=decision.outcome.value,
            previous_status=previous.value,
            status=order.status,
            note=decision.note,
        )
        return {
            "outcome": decision.outcome.value,
            "duplicate": False,
            "previous_status": previous.value,
            "status": order.status,
        }
