"""Inventory validation: server-side re-check of a submitted cart.

``validate_cart`` recomputes every price from the stock records and confirms
enough stock exists for the whole cart. It never writes: the decrement
happens later, atomically, when the order is placed. The client's claimed
prices and total must match the server's to the cent.
"""

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.checkout.shipping import shipping_rate
from ordering.errors import (
    InsufficientStockError,
    ProductNotFoundError,
    StockError,
    TotalMismatchError,
    VariantNotFoundError,
)
from ordering.shared.money import to_amount
from ordering.stock.product import Product


@dataclass(frozen=True)
class CartLine:
    """A line as submitted by the client."""

    product_id: str
    quantity: int
    unit_price: Decimal
    variant_id: str | None = None


@dataclass(frozen=True)
class ValidatedLine:
    """A line with the authoritative price and a snapshot of what was bought."""

    product_id: str
    variant_id: str | None
    sku: str
    title: str
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def as_item(self) -> dict:
        return {
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "sku": self.sku,
            "title": self.title,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
        }


@dataclass(frozen=True)
class ValidatedCart:
    lines: list[ValidatedLine]
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    shipping_rate_id: str


def _default_lookup(product_id) -> Product | None:
    return current_domain.repository_for(Product).find(product_id)


def validate_cart(
    lines: list[CartLine],
    claimed_total,
    shipping_rate_id: str,
    lookup: Callable[[str], Product | None] | None = None,
) -> ValidatedCart:
    """Check prices and stock for ``lines``; raise a typed error naming the bad line."""
    if not lines:
        raise ValidationError({"items": ["Cart is empty"]})

    lookup = lookup or _default_lookup
    rate = shipping_rate(shipping_rate_id)
    products: dict[str, Product] = {}
    demand: dict[tuple, int] = defaultdict(int)
    validated = []

    for line_no, line in enumerate(lines):
        if line.quantity is None or line.quantity <= 0:
            raise ValidationError({"quantity": [f"Line {line_no}: quantity must be positive"]})

        product_id = str(line.product_id)
        product = products.get(product_id) or lookup(product_id)
        if product is None:
            raise ProductNotFoundError(f"Product {product_id} was not found", field="product_id", line=line_no)
        products[product_id] = product

        variant_id = str(line.variant_id) if line.variant_id else None
        if product.has_variants and variant_id is None:
            raise ValidationError({"variant_id": [f"Line {line_no}: product {product_id} requires a variant"]})
        if variant_id and not product.has_variants:
            raise VariantNotFoundError(
                f"Product {product_id} has no variants", field="variant_id", line=line_no
            )

        try:
            unit_price = product.unit_price(variant_id)
            available = product.available(variant_id)
        except StockError as exc:
            exc.line = line_no
            raise

        claimed_price = to_amount(line.unit_price)
        if claimed_price != unit_price:
            raise TotalMismatchError(
                f"Line {line_no}: price {claimed_price} does not match current price {unit_price}",
                field="unit_price",
                line=line_no,
            )

        demand[(product_id, variant_id)] += line.quantity
        requested = demand[(product_id, variant_id)]
        if requested > available:
            raise InsufficientStockError(
                f"Insufficient stock for {product.sku}: {available} available, {requested} requested",
                available=available,
                requested=requested,
                line=line_no,
            )

        if variant_id:
            variant = product.variant(variant_id)
            sku = variant.sku
            title = f"{product.name} ({variant.name})" if variant.name else product.name
        else:
            sku = product.sku
            title = product.name

        validated.append(
            ValidatedLine(
                product_id=product_id,
                variant_id=variant_id,
                sku=sku,
                title=title,
                quantity=line.quantity,
                unit_price=unit_price,
            )
        )

    subtotal = sum((line.line_total for line in validated), Decimal("0.00"))
    total = subtotal + rate.amount
    claimed = to_amount(claimed_total)
    if claimed != total:
        raise TotalMismatchError(f"Total {claimed} does not match computed total {total}", field="total")

    return ValidatedCart(
        lines=validated,
        subtotal=subtotal,
        shipping=rate.amount,
        total=total,
        shipping_rate_id=rate.id,
    )
