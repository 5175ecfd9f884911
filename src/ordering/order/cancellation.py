"""Order cancellation and stock restore: commands and handler."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus
from ordering.order.stock import release_order_stock


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@ordering.command(part_of="Order")
class RestoreOrderStock:
    """Operator tool: put a cancelled order's items back into stock if that never happened."""

    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(reason=command.reason)
        if not order.stock_released:
            release_order_stock(order)
        repo.add(order)

    @handle(RestoreOrderStock)
    def restore_order_stock(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.current_status != OrderStatus.CANCELLED:
            raise ValidationError({"status": ["Stock can only be restored for cancelled orders"]})
        release_order_stock(order)
        repo.add(order)
