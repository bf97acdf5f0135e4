"""Domain errors raised by the order placement and lifecycle engine.

They extend Protean's ``ValidationError`` / ``ObjectNotFoundError`` so that
callers which only know the framework exceptions keep working, while the
HTTP layer can map each one to a stable ``code``.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class OrderingError:
    """Mixin carrying a stable error code, a message and structured details."""

    code = "DOMAIN_ERROR"
    field = "order"

    def __init__(self, message, **details):
        self.message = message
        self.details = details
        messages = {self.field: [message]}
        super().__init__(messages)
        self.messages = messages

    def __str__(self):
        return self.message


class ProductNotFound(OrderingError, ObjectNotFoundError):
    code = "PRODUCT_NOT_FOUND"
    field = "product_id"


class VariantNotFound(OrderingError, ObjectNotFoundError):
    code = "VARIANT_NOT_FOUND"
    field = "variant_id"


class OrderNotFound(OrderingError, ObjectNotFoundError):
    """Raised for missing orders and for orders owned by another customer."""

    code = "NOT_FOUND"
    field = "order_id"


class InsufficientStock(OrderingError, ValidationError):
    code = "INSUFFICIENT_STOCK"
    field = "quantity"

    @property
    def available(self):
        return self.details.get("available")

    @property
    def requested(self):
        return self.details.get("requested")


class InvalidFulfillment(OrderingError, ValidationError):
    code = "ADDRESS_REQUIRED"
    field = "fulfillment"


class InvalidTransition(OrderingError, ValidationError):
    code = "INVALID_TRANSITION"
    field = "status"


class CancellationNotAllowed(OrderingError, ValidationError):
    code = "CANCELLATION_NOT_ALLOWED"
    field = "status"


class TransactionAborted(Exception):
    """The storage transaction could not be completed; the caller may retry."""

    code = "TRANSACTION_ABORTED"
    retryable = True

    def __init__(self, message="The order could not be processed, please retry", attempts=None):
        super().__init__(message)
        self.message = message
        self.attempts = attempts
