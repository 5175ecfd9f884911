"""Pydantic request/response schemas for the storefront API.

These are external contracts (anti-corruption layer): separate from
internal Protean commands. Money travels as decimal strings or numbers and
is never handled as float internally.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from ordering.checkout.orchestrator import CheckoutRequest
from ordering.checkout.validation import CartLine


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str


class CartLineSchema(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(gt=0, decimal_places=2)


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutBody(BaseModel):
    items: list[CartLineSchema] = Field(min_length=1)
    total: Decimal = Field(ge=0, decimal_places=2)
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    shipping_rate_id: str = "standard"
    customer_id: str | None = None
    email: str | None = None
    name: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 2, "unit_price": "10.00"}],
                    "total": "25.00",
                    "shipping_address": {
                        "name": "Ada Lovelace",
                        "email": "ada@example.com",
                        "street": "12 Analytical Row",
                        "city": "London",
                        "postal_code": "N1 7AA",
                        "country": "GB",
                    },
                    "shipping_rate_id": "standard",
                    "email": "ada@example.com",
                }
            ]
        }
    }

    def to_request(self) -> CheckoutRequest:
        return CheckoutRequest(
            lines=[
                CartLine(
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for line in self.items
            ],
            total=self.total,
            shipping_address=self.shipping_address.model_dump(),
            billing_address=self.billing_address.model_dump() if self.billing_address else None,
            shipping_rate_id=self.shipping_rate_id,
            customer_id=self.customer_id,
            email=self.email,
            name=self.name,
        )


class CheckoutResponse(BaseModel):
    order_id: str
    order_number: str
    client_secret: str | None
    total: Decimal


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class OrderItemView(BaseModel):
    product_id: str
    variant_id: str | None
    sku: str | None
    title: str | None
    quantity: int
    unit_price: Decimal


class OrderView(BaseModel):
    order_id: str
    order_number: str
    customer_id: str
    status: str
    items: list[OrderItemView]
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    currency: str
    payment_reference: str | None
    shipping_address: AddressSchema
    billing_address: AddressSchema | None
    needs_reconciliation: bool
    reconciliation_note: str | None

    @classmethod
    def from_order(cls, order) -> "OrderView":
        return cls(
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=str(order.customer_id),
            status=order.status,
            items=[
                OrderItemView(
                    product_id=str(item.product_id),
                    variant_id=str(item.variant_id) if item.variant_id else None,
                    sku=item.sku,
                    title=item.title,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item in order.items
            ],
            subtotal=order.subtotal,
            shipping=order.shipping,
            total=order.total,
            currency=order.currency,
            payment_reference=order.payment_reference,
            shipping_address=AddressSchema(**order.shipping_address.to_dict()),
            billing_address=AddressSchema(**order.billing_address.to_dict()) if order.billing_address else None,
            needs_reconciliation=bool(order.needs_reconciliation),
            reconciliation_note=order.reconciliation_note,
        )


# ---------------------------------------------------------------------------
# Stock records
# ---------------------------------------------------------------------------
class RegisterProductRequest(BaseModel):
    sku: str
    name: str
    price: Decimal = Field(gt=0, decimal_places=2)
    stock: int = Field(ge=0, default=0)


class AddVariantRequest(BaseModel):
    sku: str
    name: str | None = None
    price: Decimal = Field(gt=0, decimal_places=2)
    stock: int = Field(ge=0, default=0)


class RestockRequest(BaseModel):
    quantity: int = Field(ge=1)
    variant_id: str | None = None


class ProductIdResponse(BaseModel):
    product_id: str


class VariantIdResponse(BaseModel):
    variant_id: str


class StockView(BaseModel):
    product_id: str
    sku: str
    price: Decimal
    stock: int
    variants: dict[str, int]


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class WebhookResponse(BaseModel):
    status: str
    event_id: str | None = None
    order_id: str | None = None


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Card declined"
    transient_failures: int = Field(ge=0, default=0)


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    transient_failures: int


class StatusResponse(BaseModel):
    status: str
