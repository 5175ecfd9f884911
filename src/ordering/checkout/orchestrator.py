"""Checkout orchestration: from a submitted cart to a payable order.

Flow:
    1. Resolve the customer (authenticated id, or a guest identity by email)
    2. Validate the cart against current prices and stock (read-only)
    3. PlaceOrder: decrement stock and create the PENDING order atomically
    4. Create a payment authorization at the gateway (idempotent key)
    5. RecordPaymentReference on the order
    6. Return the payment handle to the client

If step 4 or 5 fails, the placement is compensated: a dangling
authorization is cancelled, stock is restored, and the order is deleted.
When compensation itself keeps failing the order is flagged for
reconciliation and a ``ReconciliationFatalError`` surfaces.
"""

import json
import time
from dataclasses import dataclass
from decimal import Decimal

import structlog
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.utils.globals import current_domain

from notifications.notifier import OrderNotification, notify_order, order_snapshot
from ordering.checkout.validation import CartLine, ValidatedCart, validate_cart
from ordering.customer.guest import ResolveGuestCustomer
from ordering.errors import (
    GatewayError,
    GatewayUnavailableError,
    ReconciliationFatalError,
    StockError,
)
from ordering.order.compensation import CompensateCheckout, FlagOrderForReconciliation
from ordering.order.order import Order
from ordering.order.payment import RecordPaymentReference
from ordering.order.placement import PlaceOrder
from ordering.settings import load_settings
from ordering.utils.retry import retry_call
from payments.gateway import get_gateway

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CheckoutRequest:
    lines: list[CartLine]
    total: Decimal
    shipping_address: dict
    shipping_rate_id: str
    billing_address: dict | None = None
    customer_id: str | None = None
    email: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class CheckoutResult:
    order_id: str
    order_number: str
    client_secret: str | None
    payment_reference: str
    total: Decimal


def authorization_key(order_id) -> str:
    """Idempotency key for an order's authorization; stable across retries."""
    return f"order-{order_id}-authorization"


def _run_now(fn, *args):
    fn(*args)


class CheckoutOrchestrator:
    """Coordinates stock validation, order placement and payment authorization.

    Args:
        gateway: Payment gateway adapter; defaults to ``get_gateway()``.
        settings: Retry budgets and currency; defaults to ``load_settings()``.
        sleep: Backoff sleep function (injectable for tests).
        defer: Schedules fire-and-forget work, e.g. ``BackgroundTasks.add_task``.
            Defaults to running it inline.
    """

    def __init__(self, gateway=None, settings=None, sleep=time.sleep, defer=None):
        self.gateway = gateway or get_gateway()
        self.settings = settings or load_settings()
        self.sleep = sleep
        self.defer = defer or _run_now

    def checkout(self, request: CheckoutRequest) -> CheckoutResult:
        customer_id, email = self._resolve_customer(request)
        order_id = self._place_order(request, customer_id, email)
        log = logger.bind(order_id=order_id)

        order = current_domain.repository_for(Order).get(order_id)
        authorization = None
        try:
            authorization = retry_call(
                lambda: self.gateway.create_authorization(
                    amount=order.total,
                    currency=order.currency,
                    idempotency_key=authorization_key(order_id),
                    metadata={
                        "order_id": order_id,
                        "order_number": order.order_number,
                        "customer_id": customer_id,
                    },
                ),
                operation="create_authorization",
                attempts=self.settings.gateway_max_attempts,
                backoff=self.settings.gateway_backoff_seconds,
                retry_on=GatewayUnavailableError,
                sleep=self.sleep,
                order_id=order_id,
            )
            current_domain.process(
                RecordPaymentReference(order_id=order_id, payment_reference=authorization.reference),
                asynchronous=False,
            )
        except Exception as exc:
            log.error("checkout_payment_step_failed", error=str(exc))
            self._compensate(order_id, authorization, exc)
            if isinstance(exc, GatewayError):
                raise
            raise GatewayError(f"Could not record payment authorization: {exc}") from exc

        log.info(
            "checkout_completed",
            order_number=order.order_number,
            payment_reference=authorization.reference,
            total=str(order.total),
        )
        self.defer(notify_order, OrderNotification.ORDER_CREATED, order_snapshot(order))

        return CheckoutResult(
            order_id=order_id,
            order_number=order.order_number,
            client_secret=authorization.client_secret,
            payment_reference=authorization.reference,
            total=order.total,
        )

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _resolve_customer(self, request: CheckoutRequest) -> tuple[str, str | None]:
        email = request.email or (request.shipping_address or {}).get("email")
        if request.customer_id:
            return str(request.customer_id), email

        if not email:
            raise ValidationError({"email": ["Guest checkout requires an email address"]})
        customer_id = current_domain.process(
            ResolveGuestCustomer(email=email, name=request.name or request.shipping_address.get("name")),
            asynchronous=False,
        )
        return customer_id, email

    def _place_order(self, request: CheckoutRequest, customer_id: str, email: str | None) -> str:
        attempts = max(1, self.settings.placement_max_attempts)
        for attempt in range(1, attempts + 1):
            # Re-validate each round: a conflict means stock moved underneath us.
            cart = validate_cart(request.lines, request.total, request.shipping_rate_id)
            try:
                return current_domain.process(self._place_command(request, cart, customer_id, email), asynchronous=False)
            except ExpectedVersionError as exc:
                logger.warning("order_placement_conflict", attempt=attempt, error=str(exc))

        raise StockError("Stock changed while placing the order; please retry checkout")

    def _place_command(self, request: CheckoutRequest, cart: ValidatedCart, customer_id, email) -> PlaceOrder:
        return PlaceOrder(
            customer_id=customer_id,
            customer_email=email,
            items=json.dumps([line.as_item() for line in cart.lines]),
            shipping_address=json.dumps(request.shipping_address),
            billing_address=json.dumps(request.billing_address) if request.billing_address else None,
            shipping_rate_id=cart.shipping_rate_id,
            shipping=str(cart.shipping),
            currency=self.settings.currency,
        )

    def _compensate(self, order_id: str, authorization, cause: Exception) -> None:
        log = logger.bind(order_id=order_id)
        if authorization is not None:
            try:
                self.gateway.cancel_authorization(authorization.reference)
            except GatewayError as exc:
                log.warning(
                    "authorization_cancel_failed",
                    payment_reference=authorization.reference,
                    error=str(exc),
                )

        try:
            retry_call(
                lambda: current_domain.process(
                    CompensateCheckout(order_id=order_id, reason=str(cause)),
                    asynchronous=False,
                ),
                operation="compensate_checkout",
                attempts=self.settings.compensation_max_attempts,
                backoff=self.settings.compensation_backoff_seconds,
                retry_on=Exception,
                sleep=self.sleep,
                order_id=order_id,
            )
        except Exception as exc:
            log.critical("compensation_failed", error=str(exc), cause=str(cause))
            note = f"Checkout compensation failed after payment error ({cause}): {exc}"
            try:
                current_domain.process(
                    FlagOrderForReconciliation(order_id=order_id, note=note),
                    asynchronous=False,
                )
            except Exception as flag_exc:
                log.critical("reconciliation_flag_failed", error=str(flag_exc))
            raise ReconciliationFatalError(
                f"Order {order_id} could not be rolled back and needs reconciliation",
                order_id=order_id,
            ) from exc
