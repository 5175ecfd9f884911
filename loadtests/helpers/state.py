"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state; the shared contended
product is the only cross-user fact and lives in ``ContentionState``.
"""

import threading
from dataclasses import dataclass, field


@dataclass
class CheckoutState:
    """Tracks a single simulated customer's checkout."""

    product_id: str | None = None
    unit_price: str | None = None
    order_id: str | None = None
    order_number: str | None = None
    payment_reference: str | None = None


@dataclass
class ContentionState:
    """The low-stock product every contention user buys from."""

    product_id: str | None = None
    unit_price: str | None = None
    initial_stock: int = 0
    accepted: int = 0
    rejected: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock)
