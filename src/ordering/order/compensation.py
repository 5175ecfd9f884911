"""Checkout compensation: commands and handler.

When the payment half of checkout fails after the order was placed, the
placement is undone: stock goes back and the order with its items is deleted.
Compensation is idempotent; compensating an order that no longer exists is a
no-op, so retries after a partial failure are safe.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderItem, OrderStatus
from ordering.order.stock import release_order_stock

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CompensateCheckout:
    order_id = Identifier(required=True)
    reason = Text()


@ordering.command(part_of="Order")
class FlagOrderForReconciliation:
    """Leave the order in place but mark it for operator reconciliation."""

    order_id = Identifier(required=True)
    note = Text(required=True)


@ordering.command_handler(part_of=Order)
class CompensationHandler:
    @handle(CompensateCheckout)
    def compensate_checkout(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            logger.info("compensation_noop", order_id=command.order_id)
            return False

        if order.current_status != OrderStatus.PENDING:
            raise ValidationError(
                {"status": [f"Only pending orders can be compensated, order is {order.status}"]}
            )

        if not order.stock_released:
            release_order_stock(order)

        item_dao = current_domain.repository_for(OrderItem)._dao
        for item in list(order.items):
            item_dao.delete(item)
        repo._dao.delete(order)

        logger.info(
            "checkout_compensated",
            order_id=command.order_id,
            order_number=order.order_number,
            reason=command.reason,
        )
        return True

    @handle(FlagOrderForReconciliation)
    def flag_for_reconciliation(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.flag_for_reconciliation(command.note)
        repo.add(order)
        logger.critical(
            "order_flagged_for_reconciliation",
            order_id=command.order_id,
            note=command.note,
        )
