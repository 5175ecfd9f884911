"""Payment-event transition table.

Each event kind maps to a pure function deciding, from the order's current
status alone, what the event should do. Keeping the decision free of side
effects lets the application layer perform every mutation inside one unit
of work.

| Event kind              | Current status   | Decision                         |
|-------------------------|------------------|----------------------------------|
| authorization created   | PENDING          | record reference                 |
| authorization succeeded | PENDING          | → PAID                           |
| charge succeeded        | PENDING          | → PAID                           |
| any success             | CANCELLED        | flag for reconciliation          |
| failed / cancelled      | PENDING          | → CANCELLED (stock released)     |
| anything else           |                  | no-op                            |
"""

from collections.abc import Callable
from dataclasses import dataclass

from ordering.order.order import OrderStatus
from ordering.webhook.ledger import LedgerOutcome
from payments.gateway.port import EventKind

SUCCESS_KINDS = {EventKind.AUTHORIZATION_SUCCEEDED, EventKind.CHARGE_SUCCEEDED}


@dataclass(frozen=True)
class Decision:
    outcome: LedgerOutcome
    target: OrderStatus | None = None
    note: str | None = None

    @property
    def changes_status(self) -> bool:
        return self.target is not None


def _noop(status: OrderStatus, why: str) -> Decision:
    return Decision(LedgerOutcome.NOOP, note=f"{why} (order is {status.value})")


def on_authorization_created(status: OrderStatus) -> Decision:
    if status == OrderStatus.PENDING:
        return Decision(LedgerOutcome.REFERENCE_RECORDED)
    return _noop(status, "authorization created after order moved on")


def _on_success(status: OrderStatus) -> Decision:
    if status == OrderStatus.PENDING:
        return Decision(LedgerOutcome.APPLIED, target=OrderStatus.PAID)
    if status == OrderStatus.CANCELLED:
        return Decision(
            LedgerOutcome.FLAGGED,
            note="Payment captured for a cancelled order; refund or reinstate manually",
        )
    return _noop(status, "payment already recorded")


def on_authorization_succeeded(status: OrderStatus) -> Decision:
    return _on_success(status)


def on_charge_succeeded(status: OrderStatus) -> Decision:
    return _on_success(status)


def _on_failure(status: OrderStatus) -> Decision:
    if status == OrderStatus.PENDING:
        return Decision(LedgerOutcome.APPLIED, target=OrderStatus.CANCELLED)
    return _noop(status, "payment failure after order left PENDING")


def on_authorization_failed(status: OrderStatus) -> Decision:
    return _on_failure(status)


def on_authorization_cancelled(status: OrderStatus) -> Decision:
    return _on_failure(status)


TRANSITIONS: dict[EventKind, Callable[[OrderStatus], Decision]] = {
    EventKind.AUTHORIZATION_CREATED: on_authorization_created,
    EventKind.AUTHORIZATION_SUCCEEDED: on_authorization_succeeded,
    EventKind.CHARGE_SUCCEEDED: on_charge_succeeded,
    EventKind.AUTHORIZATION_FAILED: on_authorization_failed,
    EventKind.AUTHORIZATION_CANCELLED: on_authorization_cancelled,
}


def decide(kind: EventKind, status: OrderStatus) -> Decision:
    """Decision for ``kind`` on an order in ``status``; unknown kinds are ignored."""
    handler = TRANSITIONS.get(kind)
    if handler is None:
        return Decision(LedgerOutcome.IGNORED)
    return handler(status)
