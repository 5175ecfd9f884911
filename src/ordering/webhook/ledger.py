"""Idempotency ledger: one row per payment event ever handled.

A ProcessedEvent is keyed by the provider's event id and is written in the
same unit of work as the order change it records, so an event is either
fully applied and recorded or neither. Rows are never updated or deleted.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String

from ordering.domain import ordering


class LedgerOutcome(Enum):
    APPLIED = "applied"
    REFERENCE_RECORDED = "reference_recorded"
    NOOP = "noop"
    FLAGGED = "flagged"
    IGNORED = "ignored"


@ordering.aggregate
class ProcessedEvent:
    event_id = Identifier(identifier=True, required=True)
    event_type = String(required=True, max_length=100)
    order_id = Identifier()
    outcome = String(choices=LedgerOutcome, required=True)
    processed_at = DateTime()

    @classmethod
    def record(cls, event_id, event_type, outcome: LedgerOutcome, order_id=None):
        return cls(
            event_id=event_id,
            event_type=event_type,
            order_id=order_id,
            outcome=outcome.value,
            processed_at=datetime.now(UTC),
        )


@ordering.repository(part_of=ProcessedEvent)
class ProcessedEventRepository:
    def find(self, event_id) -> ProcessedEvent | None:
        try:
            return self.get(event_id)
        except ObjectNotFoundError:
            return None

    def is_processed(self, event_id) -> bool:
        return self.find(event_id) is not None
