"""Domain errors raised by the ordering context.

Every business rejection is a Protean ``ValidationError`` so callers can read
``exc.messages`` the same way they read any field validation failure. Each
class carries the HTTP status the API maps it to.
"""

from enum import Enum

from protean.exceptions import ValidationError


class DiscountRejection(Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    USAGE_EXCEEDED = "usage_exceeded"
    MINIMUM_NOT_MET = "minimum_not_met"


_DISCOUNT_MESSAGES = {
    DiscountRejection.NOT_FOUND: "Invalid discount code",
    DiscountRejection.INACTIVE: "This discount code is no longer active",
    DiscountRejection.NOT_YET_VALID: "This discount code is not valid yet",
    DiscountRejection.EXPIRED: "This discount code has expired",
    DiscountRejection.USAGE_EXCEEDED: "This discount code has reached its usage limit",
    DiscountRejection.MINIMUM_NOT_MET: "Order does not meet the minimum amount for this discount code",
}


class OrderingError(ValidationError):
    """Base class for business rule violations in the ordering context."""

    field = "order"
    code = "ordering_error"
    status_code = 400

    def __init__(self, message, field=None):
        self.message = message
        super().__init__({field or self.field: [message]})

    def __str__(self):
        return self.message


class EmptyCart(OrderingError):
    field = "cart"
    code = "empty_cart"

    def __init__(self, message="Cannot place an order with an empty cart"):
        super().__init__(message)


class DiscountError(OrderingError):
    field = "discount_code"
    code = "discount_rejected"
    status_code = 422

    def __init__(self, reason: DiscountRejection, message=None):
        self.reason = reason
        super().__init__(message or _DISCOUNT_MESSAGES[reason])


class PaymentPreconditionError(OrderingError):
    field = "payment"
    code = "payment_precondition"


class MissingTransactionRef(PaymentPreconditionError):
    field = "transaction_ref"
    code = "missing_transaction_ref"

    def __init__(self, message="A transaction ID is required for this payment method"):
        super().__init__(message)


class MissingEvidence(PaymentPreconditionError):
    field = "evidence_ref"
    code = "missing_evidence"

    def __init__(self, message="A payment screenshot is required for this payment method"):
        super().__init__(message)


class InvalidEvidence(PaymentPreconditionError):
    field = "evidence"
    code = "invalid_evidence"


class InvalidTransition(OrderingError):
    field = "status"
    code = "invalid_transition"
    status_code = 409


class ConcurrentModification(OrderingError):
    field = "revision"
    code = "concurrent_modification"
    status_code = 409

    def __init__(self, expected, actual=None):
        self.expected = expected
        self.actual = actual
        if actual is None:
            message = "Order was modified concurrently, reload and retry"
        else:
            message = f"Order was modified concurrently (expected revision {expected}, found {actual})"
        super().__init__(message)


class PersistenceError(Exception):
    """The order could not be committed. Nothing was persisted."""

    code = "persistence_failed"
    status_code = 503

    def __init__(self, message="Failed to place order, please try again"):
        self.message = message
        super().__init__(message)
