from dataclasses import replace

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture()
def fake_gateway():
    from payments.gateway import set_gateway
    from payments.gateway.fake_adapter import FakeGateway

    gateway = FakeGateway(webhook_secret="whsec_test")
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def fake_email():
    from notifications.channel import set_email_channel
    from notifications.channel.fake_email import FakeEmailAdapter

    adapter = FakeEmailAdapter()
    set_email_channel(adapter)
    return adapter


@pytest.fixture()
def settings():
    """Settings with small retry budgets and no backoff."""
    from ordering.settings import load_settings

    return replace(
        load_settings(),
        webhook_secret="whsec_test",
        gateway_backoff_seconds=0,
        resolution_backoff_seconds=0,
        compensation_backoff_seconds=0,
    )


@pytest.fixture()
def sleeps():
    """Records requested backoff delays instead of sleeping."""
    return []


@pytest.fixture()
def product_factory():
    """Register a product (optionally with variants) and return its id."""
    from ordering.stock.management import AddVariant, RegisterProduct
    from protean import current_domain

    def _make(price="25.00", stock=10, sku=None, name="Widget", variants=None):
        from uuid import uuid4

        product_id = current_domain.process(
            RegisterProduct(
                sku=sku or f"SKU-{uuid4().hex[:8].upper()}",
                name=name,
                price=price,
                stock=stock,
            ),
            asynchronous=False,
        )
        variant_ids = []
        for variant in variants or []:
            variant_ids.append(
                current_domain.process(
                    AddVariant(product_id=product_id, **variant),
                    asynchronous=False,
                )
            )
        if variants:
            return product_id, variant_ids
        return product_id

    return _make


SHIPPING_ADDRESS = {
    "name": "Ada Lovelace",
    "email": "ada@example.com",
    "street": "12 Analytical Way",
    "city": "London",
    "state": "LDN",
    "postal_code": "N1 9GU",
    "country": "GB",
}


@pytest.fixture()
def shipping_address():
    return dict(SHIPPING_ADDRESS)
