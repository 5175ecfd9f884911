"""Order aggregate: the durable record of a checkout and its payment state.

The Order is a plain (state-stored) aggregate: placement, payment reference
recording and every status change happen inside command handlers, so the
Unit of Work commits the order, its items and the stock movements together.

State Machine:
    PENDING → PAID → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING or PAID)
    DELIVERED and CANCELLED are terminal.

Money is stored as integer minor units (``*_cents``) and exposed as Decimal
properties.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.errors import InvalidTransitionError
from ordering.order.events import (
    BillingAddressRecorded,
    OrderCancelled,
    OrderDelivered,
    OrderFlaggedForReconciliation,
    OrderPaid,
    OrderPlaced,
    OrderProcessing,
    OrderShipped,
    PaymentReferenceRecorded,
)
from ordering.shared.money import from_cents, to_cents


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "Pending"
    PAID = "Paid"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _VALID_TRANSITIONS[current]


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class Address:
    """A shipping or billing address captured at checkout time.

    Once recorded on an Order the address is immutable; it represents where
    the order ships and who pays, regardless of later changes elsewhere.
    """

    name = String(max_length=255)
    email = String(max_length=254)
    phone = String(max_length=50)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A purchased line: the product (and variant) with the price paid.

    ``unit_price_cents`` is captured at placement and never recomputed from
    the current product price.
    """

    product_id = Identifier(required=True)
    variant_id = Identifier()
    sku = String(max_length=50)
    title = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price_cents = Integer(required=True, min_value=1)

    @property
    def unit_price(self) -> Decimal:
        return from_cents(self.unit_price_cents)

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    customer_id = Identifier(required=True)
    customer_email = String(max_length=254)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    items = HasMany(OrderItem)
    shipping_address = ValueObject(Address, required=True)
    billing_address = ValueObject(Address)
    shipping_rate_id = String(max_length=50)
    subtotal_cents = Integer(default=0, min_value=0)
    shipping_cents = Integer(default=0, min_value=0)
    total_cents = Integer(default=0, min_value=0)
    currency = String(max_length=3, default="USD")
    payment_reference = String(max_length=255)
    stock_released = Boolean(default=False)
    needs_reconciliation = Boolean(default=False)
    reconciliation_note = Text()
    cancellation_reason = String(max_length=500)
    paid_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_equals_items_plus_shipping(self):
        if not self.items:
            return
        subtotal = sum(item.line_total_cents for item in self.items)
        if self.subtotal_cents != subtotal:
            raise ValidationError({"subtotal": ["Subtotal must equal the sum of item prices"]})
        if self.total_cents != subtotal + (self.shipping_cents or 0):
            raise ValidationError({"total": ["Total must equal subtotal plus shipping"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        customer_id,
        items_data,
        shipping_address,
        shipping,
        shipping_rate_id=None,
        billing_address=None,
        customer_email=None,
        currency="USD",
        **kwargs,
    ):
        """Create a PENDING order from validated checkout data.

        Args:
            order_number: Unique human-facing order number.
            customer_id: Registered or guest customer placing the order.
            items_data: List of dicts with product_id, variant_id, sku,
                        title, quantity, unit_price (Decimal).
            shipping_address: Address value object.
            shipping: Shipping cost as Decimal.
            billing_address: Address value object, or None for "same as shipping".
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        items = [
            OrderItem(
                product_id=item["product_id"],
                variant_id=item.get("variant_id"),
                sku=item.get("sku"),
                title=item.get("title"),
                quantity=item["quantity"],
                unit_price_cents=to_cents(item["unit_price"]),
            )
            for item in items_data
        ]
        subtotal_cents = sum(item.line_total_cents for item in items)
        shipping_cents = to_cents(shipping)
        now = datetime.now(UTC)

        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            customer_email=customer_email,
            status=OrderStatus.PENDING.value,
            items=items,
            shipping_address=shipping_address,
            billing_address=billing_address,
            shipping_rate_id=shipping_rate_id,
            subtotal_cents=subtotal_cents,
            shipping_cents=shipping_cents,
            total_cents=subtotal_cents + shipping_cents,
            currency=currency,
            created_at=now,
            updated_at=now,
            **kwargs,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=str(customer_id),
                item_count=len(items),
                total_cents=order.total_cents,
                currency=currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Money views
    # -------------------------------------------------------------------
    @property
    def subtotal(self) -> Decimal:
        return from_cents(self.subtotal_cents)

    @property
    def shipping(self) -> Decimal:
        return from_cents(self.shipping_cents)

    @property
    def total(self) -> Decimal:
        return from_cents(self.total_cents)

    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.current_status in TERMINAL_STATES

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if not can_transition(current, target_status):
            raise InvalidTransitionError(current.value, target_status.value)

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment_reference(self, payment_reference):
        """Attach the gateway authorization reference. Repeats are no-ops."""
        if self.payment_reference == payment_reference:
            return False
        if self.payment_reference:
            raise ValidationError(
                {"payment_reference": [f"Order already has payment reference {self.payment_reference}"]}
            )

        self.payment_reference = payment_reference
        self.updated_at = datetime.now(UTC)
        self.raise_(
            PaymentReferenceRecorded(
                order_id=str(self.id),
                payment_reference=payment_reference,
            )
        )
        return True

    def mark_paid(self, payment_reference=None):
        self._assert_can_transition(OrderStatus.PAID)
        if payment_reference and not self.payment_reference:
            self.payment_reference = payment_reference
        now = datetime.now(UTC)
        self.status = OrderStatus.PAID.value
        self.paid_at = now
        self.updated_at = now

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                payment_reference=self.payment_reference,
                total_cents=self.total_cents,
                paid_at=now,
            )
        )

    def upsert_billing_address(self, address) -> bool:
        """Record provider billing details unless the customer gave a billing address."""
        if address is None or self.billing_address is not None:
            return False

        self.billing_address = address
        self.updated_at = datetime.now(UTC)
        self.raise_(
            BillingAddressRecorded(
                order_id=str(self.id),
                city=address.city,
                postal_code=address.postal_code,
                country=address.country,
            )
        )
        return True

    def mark_stock_released(self):
        if self.stock_released:
            raise ValidationError({"stock_released": ["Stock for this order was already released"]})
        self.stock_released = True
        self.updated_at = datetime.now(UTC)

    def flag_for_reconciliation(self, note):
        """Mark the order for operator attention. Notes accumulate."""
        self.needs_reconciliation = True
        self.reconciliation_note = f"{self.reconciliation_note}\n{note}" if self.reconciliation_note else note
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderFlaggedForReconciliation(
                order_id=str(self.id),
                note=note,
            )
        )

    # -------------------------------------------------------------------
    # Fulfillment transitions
    # -------------------------------------------------------------------
    def mark_processing(self):
        self._assert_can_transition(OrderStatus.PROCESSING)
        now = datetime.now(UTC)
        self.status = OrderStatus.PROCESSING.value
        self.updated_at = now
        self.raise_(OrderProcessing(order_id=str(self.id), started_at=now))

    def mark_shipped(self):
        self._assert_can_transition(OrderStatus.SHIPPED)
        now = datetime.now(UTC)
        self.status = OrderStatus.SHIPPED.value
        self.updated_at = now
        self.raise_(OrderShipped(order_id=str(self.id), shipped_at=now))

    def mark_delivered(self):
        self._assert_can_transition(OrderStatus.DELIVERED)
        now = datetime.now(UTC)
        self.status = OrderStatus.DELIVERED.value
        self.updated_at = now
        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason):
        """Cancel the order. Callers release the items' stock in the same unit of work."""
        self._assert_can_transition(OrderStatus.CANCELLED)
        previous = self.status
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                reason=reason,
                cancelled_at=now,
            )
        )
