"""Stock release for an order's items.

Runs inside the caller's unit of work so the restore commits (or rolls back)
together with the order change that triggered it.
"""

import structlog
from protean.utils.globals import current_domain

from ordering.stock.product import Product

logger = structlog.get_logger(__name__)


def release_order_stock(order) -> None:
    """Return every item's quantity to its product or variant and mark the order released."""
    order.mark_stock_released()

    repo = current_domain.repository_for(Product)
    products = {}
    for item in order.items:
        product_id = str(item.product_id)
        if product_id not in products:
            products[product_id] = repo.get(product_id)
        products[product_id].restore_stock(item.quantity, variant_id=item.variant_id)

    for product in products.values():
        repo.add(product)

    logger.info(
        "order_stock_released",
        order_id=str(order.id),
        products=len(products),
    )
