"""Shared BDD fixtures and step definitions for payment reconciliation."""

from decimal import Decimal

import pytest
from ordering.checkout.orchestrator import CheckoutOrchestrator, CheckoutRequest
from ordering.checkout.validation import CartLine
from ordering.order.order import Order
from ordering.stock.product import Product
from ordering.webhook.reconciler import WebhookReconciler
from protean import current_domain
from pytest_bdd import given, parsers, then, when


@pytest.fixture()
def world():
    """Mutable scenario state shared between steps."""
    return {}


@given(parsers.cfparse('a product "{sku}" priced {price} with {stock:d} in stock'))
def _(world, product_factory, sku, price, stock):
    world.setdefault("products", {})[sku] = product_factory(price=price, stock=stock, sku=sku)
    world["price"] = Decimal(price)


@given(parsers.cfparse("a guest checked out {quantity:d} units with standard shipping"))
def _(world, fake_gateway, fake_email, settings, shipping_address, quantity):
    (product_id,) = world["products"].values()
    result = CheckoutOrchestrator(gateway=fake_gateway, settings=settings).checkout(
        CheckoutRequest(
            lines=[CartLine(product_id=product_id, quantity=quantity, unit_price=world["price"])],
            total=world["price"] * quantity + Decimal("5.00"),
            shipping_address=shipping_address,
            shipping_rate_id="standard",
        )
    )
    world["order"] = result


@when(parsers.cfparse('the gateway reports "{event_type}" as event "{event_id}"'))
def _(world, fake_gateway, settings, event_type, event_id):
    order = world["order"]
    payload, signature = fake_gateway.build_event(
        event_type,
        order.payment_reference,
        metadata={"order_id": order.order_id},
        event_id=event_id,
    )
    world["result"] = WebhookReconciler(gateway=fake_gateway, settings=settings).process(payload, signature)


@then(parsers.cfparse('the webhook result is "{status}"'))
def _(world, status):
    assert world["result"].status.value == status


@then(parsers.cfparse('the order status is "{status}"'))
def _(world, status):
    assert current_domain.repository_for(Order).get(world["order"].order_id).status == status


@then("the order needs reconciliation")
def _(world):
    assert current_domain.repository_for(Order).get(world["order"].order_id).needs_reconciliation is True


@then(parsers.cfparse('{count:d} units of "{sku}" remain in stock'))
def _(world, count, sku):
    assert current_domain.repository_for(Product).get(world["products"][sku]).stock == count


@then(parsers.cfparse("{count:d} paid email was sent"))
def _(world, fake_email, count):
    assert len(fake_email.sent_for(f"{world['order'].order_id}:order_paid")) == count
