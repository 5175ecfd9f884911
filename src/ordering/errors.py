"""Error taxonomy for checkout and payment reconciliation.

Every error carries a stable ``code`` so API clients and the payment provider
get a machine-readable reason. Line-level errors also name the offending cart
line (``line``) and, where it applies, the field.
"""

from protean.exceptions import ValidationError


class OrderingError(Exception):
    """Base class for all checkout and reconciliation failures."""

    code = "ordering_error"
    retryable = False

    def __init__(self, message: str, field: str | None = None, line: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.line = line

    def to_dict(self) -> dict:
        payload = {"error": self.code, "message": self.message}
        if self.field is not None:
            payload["field"] = self.field
        if self.line is not None:
            payload["line"] = self.line
        return payload


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------
class StockError(OrderingError):
    code = "stock_error"


class ProductNotFoundError(StockError):
    code = "product_not_found"


class VariantNotFoundError(StockError):
    code = "variant_not_found"


class InsufficientStockError(StockError):
    code = "insufficient_stock"

    def __init__(
        self,
        message: str,
        available: int = 0,
        requested: int = 0,
        field: str | None = "quantity",
        line: int | None = None,
    ) -> None:
        super().__init__(message, field=field, line=line)
        self.available = available
        self.requested = requested


class TotalMismatchError(OrderingError):
    """Client-claimed amounts disagree with server-computed ones."""

    code = "total_mismatch"


# ---------------------------------------------------------------------------
# Payment gateway
# ---------------------------------------------------------------------------
class GatewayError(OrderingError):
    """The payment provider rejected the request or could not be reached."""

    code = "gateway_error"


class GatewayUnavailableError(GatewayError):
    """Transient provider failure (timeout, connection, rate limit)."""

    code = "gateway_unavailable"
    retryable = True


class SignatureError(OrderingError):
    code = "invalid_signature"


class MalformedEventError(OrderingError):
    code = "malformed_event"


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------
class OrderResolutionError(OrderingError):
    """A webhook references an order that is not visible yet."""

    code = "order_not_found"
    retryable = True


class ReconciliationFatalError(OrderingError):
    """Compensation failed; the order needs an operator."""

    code = "reconciliation_fatal"

    def __init__(self, message: str, order_id: str | None = None) -> None:
        super().__init__(message)
        self.order_id = order_id


class InvalidTransitionError(ValidationError):
    """Raised by the Order state machine for a disallowed status change."""

    code = "invalid_transition"

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot transition from {current} to {target}"]})
