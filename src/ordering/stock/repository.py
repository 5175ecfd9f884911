"""Repository for the Product aggregate."""

from protean.exceptions import ObjectNotFoundError

from ordering.domain import ordering
from ordering.stock.product import Product


@ordering.repository(part_of=Product)
class ProductRepository:
    """Product lookups used by the inventory validator."""

    def find(self, product_id) -> Product | None:
        """Return the product or None; checkout treats a miss as a line error."""
        try:
            return self.get(product_id)
        except ObjectNotFoundError:
            return None
