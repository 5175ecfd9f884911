"""Ordering bounded context: Checkout and Payment Reconciliation.

Handles the order lifecycle from cart submission to a durable PAID/CANCELLED
outcome: stock-checked order placement, payment authorization, and
idempotent folding of payment-provider webhooks into order state.
"""

from protean.domain import Domain

ordering = Domain(name="ordering")
