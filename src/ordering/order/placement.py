"""Order placement: command and handler.

Placement is the atomic half of checkout: every line's stock is decremented
and the PENDING order with its items is created in one unit of work. If any
line would drive stock negative, nothing is written.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import ProductNotFoundError, StockError
from ordering.order.number import generate_order_number
from ordering.order.order import Address, Order
from ordering.stock.product import Product

logger = structlog.get_logger(__name__)

_ORDER_NUMBER_ATTEMPTS = 5


@ordering.command(part_of="Order")
class PlaceOrder:
    order_id = Identifier()
    customer_id = Identifier(required=True)
    customer_email = String(max_length=254)
    items = Text(required=True)  # JSON: list of item dicts, unit_price as decimal string
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text()  # JSON: address dict, omitted = same as shipping
    shipping_rate_id = String(max_length=50)
    shipping = String(required=True, max_length=20)  # Decimal string
    currency = String(max_length=3, default="USD")


def _load(value):
    return json.loads(value) if isinstance(value, str) else value


def unique_order_number(repo) -> str:
    for _ in range(_ORDER_NUMBER_ATTEMPTS):
        number = generate_order_number()
        if repo.find_by_number(number) is None:
            return number
        logger.warning("order_number_collision", order_number=number)
    raise ValidationError({"order_number": ["Could not allocate a unique order number"]})


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = _load(command.items)
        shipping_address = Address(**_load(command.shipping_address))
        billing_address = Address(**_load(command.billing_address)) if command.billing_address else None

        product_repo = current_domain.repository_for(Product)
        products = {}
        for line, item in enumerate(items_data):
            product_id = str(item["product_id"])
            product = products.get(product_id) or product_repo.find(product_id)
            if product is None:
                raise ProductNotFoundError(f"Product {product_id} was not found", field="product_id", line=line)
            try:
                product.decrement_stock(item["quantity"], variant_id=item.get("variant_id"))
            except StockError as exc:
                exc.line = line
                raise
            products[product_id] = product

        order_repo = current_domain.repository_for(Order)
        kwargs = {"id": command.order_id} if command.order_id else {}
        order = Order.place(
            order_number=unique_order_number(order_repo),
            customer_id=command.customer_id,
            customer_email=command.customer_email,
            items_data=items_data,
            shipping_address=shipping_address,
            billing_address=billing_address,
            shipping=command.shipping,
            shipping_rate_id=command.shipping_rate_id,
            currency=command.currency or "USD",
            **kwargs,
        )

        for product in products.values():
            product_repo.add(product)
        order_repo.add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total=str(order.total),
        )
        return str(order.id)
