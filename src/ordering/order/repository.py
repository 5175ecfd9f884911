"""Repository for the Order aggregate: lookups used by webhook resolution."""

from protean.exceptions import ObjectNotFoundError

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def find(self, order_id) -> Order | None:
        try:
            return self.get(order_id)
        except ObjectNotFoundError:
            return None

    def find_by_number(self, order_number) -> Order | None:
        matches = self._dao.query.filter(order_number=order_number).all().items
        return matches[0] if matches else None

    def find_by_payment_reference(self, payment_reference) -> Order | None:
        matches = self._dao.query.filter(payment_reference=payment_reference).all().items
        return matches[0] if matches else None
