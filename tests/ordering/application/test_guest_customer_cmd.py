"""Application tests for guest customer resolution."""

import pytest
from ordering.customer.customer import Customer
from ordering.customer.guest import ResolveGuestCustomer
from protean import current_domain
from protean.exceptions import ValidationError


def _resolve(email, name=None):
    return current_domain.process(ResolveGuestCustomer(email=email, name=name), asynchronous=False)


class TestResolveGuestCustomer:
    def test_creates_guest(self):
        customer_id = _resolve("guest@example.com", "Grace")
        customer = current_domain.repository_for(Customer).get(customer_id)
        assert customer.is_guest is True
        assert customer.email == "guest@example.com"
        assert customer.name == "Grace"

    def test_reuses_guest_for_same_email(self):
        assert _resolve("guest@example.com") == _resolve("guest@example.com")

    def test_email_is_normalized(self):
        assert _resolve("Guest@Example.com ") == _resolve("guest@example.com")

    def test_registered_customer_is_not_reused(self):
        registered = Customer(email="member@example.com", is_guest=False)
        current_domain.repository_for(Customer).add(registered)

        guest_id = _resolve("member@example.com")
        assert guest_id != str(registered.id)

    def test_invalid_email(self):
        with pytest.raises(ValidationError) as exc:
            _resolve("not-an-email")
        assert "email" in exc.value.messages
