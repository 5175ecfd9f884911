"""Stock record management: commands and handler.

Seeds and tops up the Product/Variant counters checkout reads. Catalog
authoring is out of scope; these commands exist so operators and tests can put
sellable stock in place.
"""

from datetime import UTC, datetime

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.shared.money import to_cents
from ordering.stock.product import Product, Variant


@ordering.command(part_of="Product")
class RegisterProduct:
    product_id = Identifier()
    sku = String(required=True, max_length=50)
    name = String(required=True, max_length=255)
    price = String(required=True, max_length=20)  # Decimal string
    stock = Integer(default=0, min_value=0)


@ordering.command(part_of="Product")
class AddVariant:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    sku = String(required=True, max_length=50)
    name = String(max_length=255)
    price = String(required=True, max_length=20)
    stock = Integer(default=0, min_value=0)


@ordering.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True, min_value=1)


@ordering.command_handler(part_of=Product)
class StockManagementHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        kwargs = {}
        if command.product_id:
            kwargs["id"] = command.product_id

        product = Product(
            sku=command.sku,
            name=command.name,
            price_cents=to_cents(command.price),
            stock=command.stock or 0,
            updated_at=datetime.now(UTC),
            **kwargs,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(AddVariant)
    def add_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)

        kwargs = {}
        if command.variant_id:
            kwargs["id"] = command.variant_id

        variant = Variant(
            sku=command.sku,
            name=command.name,
            price_cents=to_cents(command.price),
            stock=command.stock or 0,
            **kwargs,
        )
        product.add_variants(variant)
        repo.add(product)
        return str(variant.id)

    @handle(RestockProduct)
    def restock_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.restore_stock(command.quantity, variant_id=command.variant_id)
        repo.add(product)
