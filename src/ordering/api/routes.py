"""FastAPI routes: checkout, orders, payment webhooks and stock records."""

import os

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from protean.utils.globals import current_domain

from notifications.notifier import OrderNotification, notify_order, order_snapshot
from ordering.api.schemas import (
    AddVariantRequest,
    CancelOrderRequest,
    CheckoutBody,
    CheckoutResponse,
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    OrderView,
    ProductIdResponse,
    RegisterProductRequest,
    RestockRequest,
    StatusResponse,
    StockView,
    VariantIdResponse,
    WebhookResponse,
)
from ordering.checkout.orchestrator import CheckoutOrchestrator
from ordering.order.cancellation import CancelOrder, RestoreOrderStock
from ordering.order.fulfillment import (
    MarkOrderDelivered,
    MarkOrderProcessing,
    MarkOrderShipped,
)
from ordering.order.order import Order
from ordering.stock.management import AddVariant, RegisterProduct, RestockProduct
from ordering.stock.product import Product
from ordering.webhook.reconciler import WebhookReconciler
from payments.gateway import get_gateway
from payments.gateway.fake_adapter import FakeGateway

# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def checkout(body: CheckoutBody, background_tasks: BackgroundTasks) -> CheckoutResponse:
    """Validate the cart, place the order and return the payment handle.

    Gateway calls and retry backoff block, so checkout runs in the threadpool.
    """
    orchestrator = CheckoutOrchestrator(defer=background_tasks.add_task)
    result = await run_in_threadpool(orchestrator.checkout, body.to_request())
    return CheckoutResponse(
        order_id=result.order_id,
        order_number=result.order_number,
        client_secret=result.client_secret,
        total=result.total,
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/{order_id}", response_model=OrderView)
async def get_order(order_id: str) -> OrderView:
    order = current_domain.repository_for(Order).get(order_id)
    return OrderView.from_order(order)


@order_router.put("/{order_id}/processing", response_model=StatusResponse)
async def mark_processing(order_id: str) -> StatusResponse:
    current_domain.process(MarkOrderProcessing(order_id=order_id), asynchronous=False)
    return StatusResponse(status="processing")


@order_router.put("/{order_id}/ship", response_model=StatusResponse)
async def mark_shipped(order_id: str) -> StatusResponse:
    current_domain.process(MarkOrderShipped(order_id=order_id), asynchronous=False)
    return StatusResponse(status="shipped")


@order_router.put("/{order_id}/deliver", response_model=StatusResponse)
async def mark_delivered(order_id: str) -> StatusResponse:
    current_domain.process(MarkOrderDelivered(order_id=order_id), asynchronous=False)
    return StatusResponse(status="delivered")


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest, background_tasks: BackgroundTasks) -> StatusResponse:
    """Cancel a PENDING or PAID order and release its stock."""
    current_domain.process(CancelOrder(order_id=order_id, reason=body.reason), asynchronous=False)
    order = current_domain.repository_for(Order).get(order_id)
    background_tasks.add_task(notify_order, OrderNotification.ORDER_CANCELLED, order_snapshot(order))
    return StatusResponse(status="cancelled")


@order_router.put("/{order_id}/restore-stock", response_model=StatusResponse)
async def restore_order_stock(order_id: str) -> StatusResponse:
    current_domain.process(RestoreOrderStock(order_id=order_id), asynchronous=False)
    return StatusResponse(status="stock_restored")


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_gateway_signature: str | None = Header(default=None),
    stripe_signature: str | None = Header(default=None),
) -> WebhookResponse:
    """Fold a signed payment-provider event into order state.

    The raw body is verified before it is parsed, so it is read directly
    instead of through a pydantic model. Order resolution sleeps between
    attempts, so processing runs in the threadpool.
    """
    payload = await request.body()
    reconciler = WebhookReconciler(defer=background_tasks.add_task)
    result = await run_in_threadpool(reconciler.process, payload, x_gateway_signature or stripe_signature)
    return WebhookResponse(
        status=result.status.value,
        event_id=result.event_id,
        order_id=result.order_id,
    )


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        transient_failures=body.transient_failures,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        transient_failures=gateway.transient_failures,
    )


# ---------------------------------------------------------------------------
# Stock Router
# ---------------------------------------------------------------------------
stock_router = APIRouter(prefix="/stock", tags=["stock"])


@stock_router.post("/products", status_code=201, response_model=ProductIdResponse)
async def register_product(body: RegisterProductRequest) -> ProductIdResponse:
    product_id = current_domain.process(
        RegisterProduct(sku=body.sku, name=body.name, price=str(body.price), stock=body.stock),
        asynchronous=False,
    )
    return ProductIdResponse(product_id=product_id)


@stock_router.post("/products/{product_id}/variants", status_code=201, response_model=VariantIdResponse)
async def add_variant(product_id: str, body: AddVariantRequest) -> VariantIdResponse:
    variant_id = current_domain.process(
        AddVariant(
            product_id=product_id,
            sku=body.sku,
            name=body.name,
            price=str(body.price),
            stock=body.stock,
        ),
        asynchronous=False,
    )
    return VariantIdResponse(variant_id=variant_id)


@stock_router.put("/products/{product_id}/restock", response_model=StatusResponse)
async def restock_product(product_id: str, body: RestockRequest) -> StatusResponse:
    current_domain.process(
        RestockProduct(product_id=product_id, variant_id=body.variant_id, quantity=body.quantity),
        asynchronous=False,
    )
    return StatusResponse(status="restocked")


@stock_router.get("/products/{product_id}", response_model=StockView)
async def get_stock(product_id: str) -> StockView:
    product = current_domain.repository_for(Product).get(product_id)
    return StockView(
        product_id=str(product.id),
        sku=product.sku,
        price=product.price,
        stock=product.stock or 0,
        variants={str(v.id): v.stock or 0 for v in product.variants},
    )
