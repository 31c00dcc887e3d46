"""Payment methods and the requirements each imposes on checkout.

``qr`` is evidence-based: the customer pays by scanning a QR code and submits
the transaction id plus a screenshot, which an admin later verifies.
``partner`` is deferred: funds are collected out-of-band and the order is
eligible for fulfillment right away.
"""

from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ValidationError

from ordering.errors import MissingEvidence, MissingTransactionRef


class PaymentMethod(Enum):
    QR = "qr"
    PARTNER = "partner"


class PaymentStatus(Enum):
    PENDING = "pending"
    PENDING_VERIFICATION = "pending_verification"
    PAID = "paid"
    FAILED = "failed"


@dataclass(frozen=True)
class PaymentRequirements:
    method: PaymentMethod
    requires_transaction_ref: bool
    requires_evidence: bool
    initial_status: PaymentStatus

    @property
    def requires_verification(self) -> bool:
        return self.initial_status == PaymentStatus.PENDING_VERIFICATION


_REQUIREMENTS = {
    PaymentMethod.QR: PaymentRequirements(
        method=PaymentMethod.QR,
        requires_transaction_ref=True,
        requires_evidence=True,
        initial_status=PaymentStatus.PENDING_VERIFICATION,
    ),
    PaymentMethod.PARTNER: PaymentRequirements(
        method=PaymentMethod.PARTNER,
        requires_transaction_ref=False,
        requires_evidence=False,
        initial_status=PaymentStatus.PENDING,
    ),
}


def select_method(method) -> PaymentRequirements:
    try:
        payment_method = method if isinstance(method, PaymentMethod) else PaymentMethod((method or "").strip().lower())
    except ValueError:
        valid = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError({"payment_method": [f"Unknown payment method '{method}'. Expected one of: {valid}"]})
    return _REQUIREMENTS[payment_method]


def is_evidence_based(method) -> bool:
    return select_method(method).requires_verification


def check_preconditions(method, transaction_ref=None, evidence_ref=None) -> PaymentRequirements:
    """Raise if the chosen method's inputs are missing. Blank strings count as missing."""
    requirements = select_method(method)
    if requirements.requires_transaction_ref and not (transaction_ref or "").strip():
        raise MissingTransactionRef()
    if requirements.requires_evidence and not (evidence_ref or "").strip():
        raise MissingEvidence()
    return requirements
