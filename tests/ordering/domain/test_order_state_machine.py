"""Tests for Order state machine: valid transitions and invalid transition guards."""

from decimal import Decimal

import pytest
from ordering.errors import InvalidTransitionError
from ordering.order.order import TERMINAL_STATES, Address, Order, OrderStatus, can_transition
from protean.exceptions import ValidationError


def _make_order():
    return Order.place(
        order_number="20260101-ABC123",
        customer_id="cust-001",
        items_data=[
            {
                "product_id": "prod-001",
                "sku": "SKU-001",
                "title": "Test Product",
                "quantity": 1,
                "unit_price": Decimal("50.00"),
            }
        ],
        shipping_address=Address(street="1 St", city="C", postal_code="00000", country="US"),
        shipping=Decimal("5.00"),
    )


def _order_at_state(target_status):
    """Create an order and advance it to the desired state."""
    order = _make_order()
    order._events.clear()

    if target_status == OrderStatus.PENDING:
        return order

    if target_status == OrderStatus.CANCELLED:
        order.cancel("Changed mind")
        order._events.clear()
        return order

    order.mark_paid("pi_001")
    order._events.clear()
    if target_status == OrderStatus.PAID:
        return order

    order.mark_processing()
    order._events.clear()
    if target_status == OrderStatus.PROCESSING:
        return order

    order.mark_shipped()
    order._events.clear()
    if target_status == OrderStatus.SHIPPED:
        return order

    order.mark_delivered()
    order._events.clear()
    return order


_ACTIONS = {
    OrderStatus.PAID: lambda order: order.mark_paid("pi_002"),
    OrderStatus.PROCESSING: lambda order: order.mark_processing(),
    OrderStatus.SHIPPED: lambda order: order.mark_shipped(),
    OrderStatus.DELIVERED: lambda order: order.mark_delivered(),
    OrderStatus.CANCELLED: lambda order: order.cancel("No longer needed"),
}

_ALLOWED = {
    (OrderStatus.PENDING, OrderStatus.PAID),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PAID, OrderStatus.PROCESSING),
    (OrderStatus.PAID, OrderStatus.CANCELLED),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
}


class TestTransitionTable:
    @pytest.mark.parametrize("current", list(OrderStatus))
    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_can_transition_matches_table(self, current, target):
        assert can_transition(current, target) == ((current, target) in _ALLOWED)

    def test_terminal_states(self):
        assert TERMINAL_STATES == {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

    @pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_terminal_states_have_no_exits(self, terminal):
        assert not any(can_transition(terminal, target) for target in OrderStatus)


class TestValidTransitions:
    @pytest.mark.parametrize("current,target", sorted(_ALLOWED, key=lambda pair: (pair[0].value, pair[1].value)))
    def test_allowed_transition_changes_status(self, current, target):
        order = _order_at_state(current)
        _ACTIONS[target](order)
        assert order.status == target.value

    def test_full_happy_path(self):
        order = _order_at_state(OrderStatus.DELIVERED)
        assert order.current_status == OrderStatus.DELIVERED
        assert order.is_terminal


class TestInvalidTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            (current, target)
            for current in OrderStatus
            for target in _ACTIONS
            if (current, target) not in _ALLOWED
        ],
    )
    def test_disallowed_transition_raises(self, current, target):
        order = _order_at_state(current)
        with pytest.raises(InvalidTransitionError) as exc:
            _ACTIONS[target](order)
        assert exc.value.current == current.value
        assert exc.value.target == target.value
        assert order.status == current.value

    def test_invalid_transition_is_a_validation_error(self):
        order = _order_at_state(OrderStatus.SHIPPED)
        with pytest.raises(ValidationError) as exc:
            order.cancel("Too late")
        assert "status" in exc.value.messages

    def test_processing_order_cannot_be_cancelled(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        with pytest.raises(InvalidTransitionError):
            order.cancel("Too late")
