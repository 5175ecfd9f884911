"""Product aggregate with Variant entity: the stock records checkout consults.

Catalog management lives elsewhere; this aggregate only mirrors what checkout
needs: the authoritative unit price and the sellable stock counter at product
or variant granularity. Checkout is the only writer (decrement on order
placement, restore on compensation or cancellation).

Concurrent checkouts for the same product contend on this aggregate; the
repository's version check rejects a stale write, so two units of work can
never both spend the same stock.
"""

from datetime import UTC, datetime
from decimal import Decimal

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Integer, String

from ordering.domain import ordering
from ordering.errors import InsufficientStockError, VariantNotFoundError
from ordering.shared.money import from_cents


@ordering.entity(part_of="Product")
class Variant:
    """A purchasable variation (size, colour, ...) with its own price and stock."""

    sku = String(required=True, max_length=50)
    name = String(max_length=255)
    price_cents = Integer(required=True, min_value=1)
    stock = Integer(default=0)

    @property
    def price(self) -> Decimal:
        return from_cents(self.price_cents)


@ordering.aggregate
class Product:
    sku = String(required=True, max_length=50, unique=True)
    name = String(required=True, max_length=255)
    price_cents = Integer(required=True, min_value=1)
    stock = Integer(default=0)
    variants = HasMany(Variant)
    updated_at = DateTime()

    @invariant.post
    def stock_cannot_be_negative(self):
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": ["Product stock cannot be negative"]})
        for variant in self.variants or []:
            if variant.stock is not None and variant.stock < 0:
                raise ValidationError({"stock": [f"Variant {variant.sku} stock cannot be negative"]})

    @property
    def price(self) -> Decimal:
        return from_cents(self.price_cents)

    @property
    def has_variants(self) -> bool:
        return bool(self.variants)

    def variant(self, variant_id):
        """Return the variant with ``variant_id`` or raise VariantNotFoundError."""
        found = next((v for v in self.variants or [] if str(v.id) == str(variant_id)), None)
        if found is None:
            raise VariantNotFoundError(
                f"Variant {variant_id} of product {self.id} was not found",
                field="variant_id",
            )
        return found

    def available(self, variant_id=None) -> int:
        if variant_id:
            return self.variant(variant_id).stock or 0
        return self.stock or 0

    def unit_price(self, variant_id=None) -> Decimal:
        if variant_id:
            return self.variant(variant_id).price
        return self.price

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def decrement_stock(self, quantity: int, variant_id=None) -> None:
        """Take ``quantity`` units out of stock, refusing to go negative."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        available = self.available(variant_id)
        if available < quantity:
            raise InsufficientStockError(
                f"Insufficient stock for {self.sku}: {available} available, {quantity} requested",
                available=available,
                requested=quantity,
            )

        if variant_id:
            variant = self.variant(variant_id)
            variant.stock = available - quantity
        else:
            self.stock = available - quantity
        self.updated_at = datetime.now(UTC)

    def restore_stock(self, quantity: int, variant_id=None) -> None:
        """Return ``quantity`` units to stock (compensation or cancellation)."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        if variant_id:
            variant = self.variant(variant_id)
            variant.stock = (variant.stock or 0) + quantity
        else:
            self.stock = (self.stock or 0) + quantity
        self.updated_at = datetime.now(UTC)
