"""Guest customer resolution: command and handler."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from ordering.customer.customer import Customer
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Customer")
class ResolveGuestCustomer:
    """Find the guest identity for an email, creating it on first checkout."""

    email = String(required=True, max_length=254)
    name = String(max_length=255)


@ordering.command_handler(part_of=Customer)
class ResolveGuestCustomerHandler:
    @handle(ResolveGuestCustomer)
    def resolve_guest(self, command):
        if "@" not in command.email:
            raise ValidationError({"email": ["A valid email is required for guest checkout"]})

        repo = current_domain.repository_for(Customer)
        existing = repo.find_guest_by_email(command.email)
        if existing is not None:
            return str(existing.id)

        customer = Customer.guest(command.email, name=command.name)
        repo.add(customer)
        logger.info("guest_customer_created", customer_id=str(customer.id))
        return str(customer.id)
