"""Tests for the payment-event transition table."""

import pytest
from ordering.order.order import OrderStatus
from ordering.webhook.ledger import LedgerOutcome
from ordering.webhook.transitions import SUCCESS_KINDS, TRANSITIONS, decide
from payments.gateway.port import EventKind

_SUCCESS = [EventKind.AUTHORIZATION_SUCCEEDED, EventKind.CHARGE_SUCCEEDED]
_FAILURE = [EventKind.AUTHORIZATION_FAILED, EventKind.AUTHORIZATION_CANCELLED]


class TestSuccessEvents:
    @pytest.mark.parametrize("kind", _SUCCESS)
    def test_pending_becomes_paid(self, kind):
        decision = decide(kind, OrderStatus.PENDING)
        assert decision.outcome == LedgerOutcome.APPLIED
        assert decision.target == OrderStatus.PAID
        assert decision.changes_status

    @pytest.mark.parametrize("kind", _SUCCESS)
    def test_cancelled_order_is_flagged(self, kind):
        decision = decide(kind, OrderStatus.CANCELLED)
        assert decision.outcome == LedgerOutcome.FLAGGED
        assert decision.target is None
        assert "cancelled" in decision.note

    @pytest.mark.parametrize("kind", _SUCCESS)
    @pytest.mark.parametrize(
        "status",
        [OrderStatus.PAID, OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED],
    )
    def test_later_statuses_are_noops(self, kind, status):
        decision = decide(kind, status)
        assert decision.outcome == LedgerOutcome.NOOP
        assert not decision.changes_status

    def test_success_kinds(self):
        assert SUCCESS_KINDS == set(_SUCCESS)


class TestFailureEvents:
    @pytest.mark.parametrize("kind", _FAILURE)
    def test_pending_becomes_cancelled(self, kind):
        decision = decide(kind, OrderStatus.PENDING)
        assert decision.outcome == LedgerOutcome.APPLIED
        assert decision.target == OrderStatus.CANCELLED

    @pytest.mark.parametrize("kind", _FAILURE)
    @pytest.mark.parametrize("status", [s for s in OrderStatus if s != OrderStatus.PENDING])
    def test_failure_after_pending_is_noop(self, kind, status):
        assert decide(kind, status).outcome == LedgerOutcome.NOOP


class TestAuthorizationCreated:
    def test_pending_records_reference(self):
        assert decide(EventKind.AUTHORIZATION_CREATED, OrderStatus.PENDING).outcome == LedgerOutcome.REFERENCE_RECORDED

    def test_after_payment_is_noop(self):
        assert decide(EventKind.AUTHORIZATION_CREATED, OrderStatus.PAID).outcome == LedgerOutcome.NOOP


def test_unknown_kind_is_ignored():
    assert decide(EventKind.UNKNOWN, OrderStatus.PENDING).outcome == LedgerOutcome.IGNORED


def test_every_known_kind_has_a_handler():
    assert set(TRANSITIONS) == {kind for kind in EventKind if kind != EventKind.UNKNOWN}
