"""Customer aggregate: the buyer an order belongs to.

Registered accounts are managed by the identity service; this aggregate only
keeps what checkout needs. Guest checkouts get a synthetic guest Customer so
every order has an owner, and guest records are never merged into a
registered account that happens to share the email.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, String

from ordering.domain import ordering


@ordering.aggregate
class Customer:
    email = String(required=True, max_length=254)
    name = String(max_length=255)
    is_guest = Boolean(default=False)
    created_at = DateTime()

    @classmethod
    def guest(cls, email, name=None):
        return cls(
            email=normalize_email(email),
            name=name,
            is_guest=True,
            created_at=datetime.now(UTC),
        )


def normalize_email(email: str) -> str:
    return email.strip().lower()


@ordering.repository(part_of=Customer)
class CustomerRepository:
    def find_guest_by_email(self, email) -> Customer | None:
        matches = (
            self._dao.query.filter(email=normalize_email(email), is_guest=True)
            .order_by("created_at")
            .all()
            .items
        )
        return matches[0] if matches else None
