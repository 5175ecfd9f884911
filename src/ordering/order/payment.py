"""Payment reference recording: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.command(part_of="Order")
class RecordPaymentReference:
    """Attach the gateway authorization reference created for the order."""

    order_id = Identifier(required=True)
    payment_reference = String(required=True, max_length=255)


@ordering.command_handler(part_of=Order)
class RecordPaymentReferenceHandler:
    @handle(RecordPaymentReference)
    def record_payment_reference(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.record_payment_reference(command.payment_reference):
            repo.add(order)
