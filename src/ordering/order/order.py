"""Order aggregate: the committed result of a checkout.

An order carries two status axes that move together:

    order_status:   processing -> confirmed -> shipped -> out_for_delivery -> delivered
                    cancelled from any non-terminal state
    payment_status: pending -> paid | failed
                    pending_verification -> paid | failed (admin decision only)

Both axes are changed through one joint ``OrderState`` so a transition can
never leave the order half-updated. Illegal combinations are rejected before
any field changes:

- ``pending_verification`` only while the order is ``processing``
- evidence-based orders leave ``processing`` only once payment is ``paid``
- a failed payment blocks fulfillment

Every successful transition bumps ``revision`` and raises one event.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.errors import ConcurrentModification, InvalidTransition
from ordering.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentApproved,
    PaymentRejected,
    PaymentStatusChanged,
)
from ordering.payment.methods import PaymentMethod, PaymentStatus, select_method
from ordering.shared.money import to_money

LINE_SCHEMA_VERSION = 1


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Forward-only fulfillment ordering; skipping ahead is allowed
_FULFILLMENT_RANK = {
    OrderStatus.PROCESSING: 0,
    OrderStatus.CONFIRMED: 1,
    OrderStatus.SHIPPED: 2,
    OrderStatus.OUT_FOR_DELIVERY: 3,
    OrderStatus.DELIVERED: 4,
}

_TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


@dataclass(frozen=True)
class OrderState:
    """The (fulfillment, payment) pair an order is in."""

    order_status: OrderStatus
    payment_status: PaymentStatus

    def conflict(self, evidence_based: bool) -> str | None:
        """Describe why this combination is illegal, or None if it is legal."""
        if self.payment_status == PaymentStatus.PENDING_VERIFICATION and self.order_status != OrderStatus.PROCESSING:
            return "Orders awaiting payment verification must remain in processing"
        if self.payment_status == PaymentStatus.FAILED and self.order_status not in (
            OrderStatus.PROCESSING,
            OrderStatus.CANCELLED,
        ):
            return "Orders with a failed payment cannot be fulfilled"
        if (
            evidence_based
            and self.order_status not in (OrderStatus.PROCESSING, OrderStatus.CANCELLED)
            and self.payment_status != PaymentStatus.PAID
        ):
            return "Payment must be verified before this order can be fulfilled"
        return None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class CustomerContact:
    """Who placed the order, captured at checkout. Guests have no customer_id."""

    name = String(required=True, max_length=255)
    email = String(required=True, max_length=254)
    phone = String(max_length=50)


@ordering.value_object(part_of="Order")
class ShippingAddress:
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLine:
    """A cart line frozen into the order. ``position`` keeps the cart order."""

    product_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image_ref = String(max_length=500)
    position = Integer(required=True, min_value=1)

    @property
    def line_total(self):
        return to_money(self.unit_price * self.quantity)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier()  # None for guest checkout
    customer = ValueObject(CustomerContact, required=True)
    shipping_address = ValueObject(ShippingAddress, required=True)
    lines = HasMany(OrderLine)
    line_schema_version = Integer(default=LINE_SCHEMA_VERSION)
    subtotal = Float(required=True, min_value=0.0)
    discount_amount = Float(default=0.0, min_value=0.0)
    discount_code = String(max_length=50)
    total = Float(required=True, min_value=0.0)
    payment_method = String(choices=PaymentMethod, required=True)
    transaction_ref = String(max_length=255)
    evidence_ref = String(max_length=500)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    order_status = String(choices=OrderStatus, default=OrderStatus.PROCESSING.value)
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=10)  # ISO date string
    delivery_notes = Text()
    delivered_at = DateTime()
    cancellation_reason = String(max_length=500)
    checkout_token = String(max_length=100, unique=True)  # one order per checkout attempt
    revision = Integer(default=1, min_value=1)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_be_subtotal_less_discount(self):
        expected = to_money(max(0.0, (self.subtotal or 0.0) - (self.discount_amount or 0.0)))
        if abs((self.total or 0.0) - expected) > 0.005:
            raise ValidationError({"total": [f"Total {self.total} does not match subtotal less discount ({expected})"]})

    @invariant.post
    def evidence_required_while_awaiting_verification(self):
        if self.payment_status == PaymentStatus.PENDING_VERIFICATION.value and not self.evidence_ref:
            raise ValidationError({"evidence_ref": ["Payment evidence is required for orders awaiting verification"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        lines,
        customer,
        shipping_address,
        payment_method,
        subtotal,
        discount=None,
        transaction_ref=None,
        evidence_ref=None,
        customer_id=None,
        delivery_notes=None,
        checkout_token=None,
        order_id=None,
    ):
        """Build a new order from validated cart lines.

        Args:
            lines: CartLine sequence, in cart order.
            customer: Dict with name, email and optionally phone.
            shipping_address: Dict with street, city, state, postal_code, country.
            payment_method: "qr" or "partner".
            subtotal: Unrounded cart subtotal.
            discount: The DiscountQuote to apply, or None.
            order_id: Identity chosen by the caller, generated when omitted.
        """
        requirements = select_method(payment_method)
        now = datetime.now(UTC)

        subtotal = to_money(subtotal)
        discount_amount = discount.rounded_amount if discount else 0.0
        total = to_money(max(0.0, subtotal - discount_amount))

        identity = {"id": order_id} if order_id else {}
        order = cls(
            **identity,
            customer_id=customer_id,
            customer=CustomerContact(
                name=customer.get("name"),
                email=customer.get("email"),
                phone=customer.get("phone"),
            ),
            shipping_address=ShippingAddress(
                street=shipping_address.get("street"),
                city=shipping_address.get("city"),
                state=shipping_address.get("state"),
                postal_code=shipping_address.get("postal_code"),
                country=shipping_address.get("country"),
            ),
            lines=[
                OrderLine(
                    product_id=line.product_id,
                    title=line.title or line.product_id,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    image_ref=line.image_ref,
                    position=position,
                )
                for position, line in enumerate(lines, start=1)
            ],
            line_schema_version=LINE_SCHEMA_VERSION,
            subtotal=subtotal,
            discount_amount=discount_amount,
            discount_code=discount.code if discount else None,
            total=total,
            payment_method=requirements.method.value,
            transaction_ref=transaction_ref if requirements.requires_transaction_ref else None,
            evidence_ref=evidence_ref if requirements.requires_evidence else None,
            payment_status=requirements.initial_status.value,
            order_status=OrderStatus.PROCESSING.value,
            delivery_notes=delivery_notes,
            checkout_token=checkout_token,
            revision=1,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=customer_id,
                customer_name=order.customer.name,
                customer_email=order.customer.email,
                payment_method=order.payment_method,
                payment_status=order.payment_status,
                order_status=order.order_status,
                line_count=len(order.lines),
                subtotal=order.subtotal,
                discount_amount=order.discount_amount,
                discount_code=order.discount_code,
                total=order.total,
                revision=order.revision,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State helpers
    # -------------------------------------------------------------------
    @property
    def state(self) -> OrderState:
        return OrderState(OrderStatus(self.order_status), PaymentStatus(self.payment_status))

    @property
    def is_evidence_based(self) -> bool:
        return select_method(self.payment_method).requires_verification

    def ordered_lines(self):
        return sorted(self.lines, key=lambda line: line.position)

    def _check_revision(self, expected_revision):
        if expected_revision is not None and expected_revision != self.revision:
            raise ConcurrentModification(expected_revision, self.revision)

    def _enter(self, target: OrderState, **details):
        """Move to ``target`` and apply ``details`` in one step, or change nothing."""
        conflict = target.conflict(self.is_evidence_based)
        if conflict:
            raise InvalidTransition(conflict)

        with atomic_change(self):
            self.order_status = target.order_status.value
            self.payment_status = target.payment_status.value
            for field_name, value in details.items():
                setattr(self, field_name, value)
            self.revision = (self.revision or 1) + 1
            self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Payment verification (evidence-based orders)
    # -------------------------------------------------------------------
    def approve_payment(self, actor, notes=None, expected_revision=None):
        self._check_revision(expected_revision)
        if self.payment_status != PaymentStatus.PENDING_VERIFICATION.value:
            raise InvalidTransition(f"Cannot approve payment: payment is {self.payment_status}, not awaiting verification")

        self._enter(OrderState(OrderStatus.CONFIRMED, PaymentStatus.PAID))
        self.raise_(
            PaymentApproved(
                order_id=str(self.id),
                actor=actor,
                notes=notes,
                revision=self.revision,
                occurred_at=self.updated_at,
            )
        )

    def reject_payment(self, actor, reason, expected_revision=None):
        if not (reason or "").strip():
            raise ValidationError({"reason": ["A reason is required to reject a payment"]})
        self._check_revision(expected_revision)
        if self.payment_status != PaymentStatus.PENDING_VERIFICATION.value:
            raise InvalidTransition(f"Cannot reject payment: payment is {self.payment_status}, not awaiting verification")

        self._enter(
            OrderState(OrderStatus.CANCELLED, PaymentStatus.FAILED),
            cancellation_reason=reason,
        )
        self.raise_(
            PaymentRejected(
                order_id=str(self.id),
                actor=actor,
                reason=reason,
                revision=self.revision,
                occurred_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def advance_to(
        self,
        status,
        actor,
        tracking_number=None,
        estimated_delivery=None,
        notes=None,
        expected_revision=None,
    ):
        """Move forward on the fulfillment axis, possibly skipping steps."""
        try:
            target = OrderStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status '{status}'"]})
        if target == OrderStatus.CANCELLED:
            raise InvalidTransition("Use cancellation to cancel an order")

        self._check_revision(expected_revision)
        current = OrderStatus(self.order_status)
        if current in _TERMINAL_STATES or _FULFILLMENT_RANK[target] <= _FULFILLMENT_RANK[current]:
            raise InvalidTransition(f"Cannot transition from {current.value} to {target.value}")

        details = {}
        if tracking_number:
            details["tracking_number"] = tracking_number
        if estimated_delivery:
            details["estimated_delivery"] = estimated_delivery
        if target == OrderStatus.DELIVERED:
            details["delivered_at"] = datetime.now(UTC)

        self._enter(OrderState(target, PaymentStatus(self.payment_status)), **details)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                actor=actor,
                tracking_number=self.tracking_number,
                estimated_delivery=self.estimated_delivery,
                notes=notes,
                revision=self.revision,
                occurred_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Payment status (deferred-payment orders)
    # -------------------------------------------------------------------
    def update_payment_status(self, status, actor, notes=None, expected_revision=None):
        try:
            target = PaymentStatus(status)
        except ValueError:
            raise ValidationError({"payment_status": [f"Unknown payment status '{status}'"]})
        if target not in (PaymentStatus.PAID, PaymentStatus.FAILED):
            raise InvalidTransition(f"Payment status can only be set to paid or failed, not {target.value}")

        self._check_revision(expected_revision)
        if self.is_evidence_based:
            raise InvalidTransition("Evidence-based payments are settled by approving or rejecting the evidence")
        if self.order_status == OrderStatus.CANCELLED.value:
            raise InvalidTransition("Cannot update the payment of a cancelled order")

        current = PaymentStatus(self.payment_status)
        if current != PaymentStatus.PENDING:
            raise InvalidTransition(f"Cannot transition payment from {current.value} to {target.value}")

        self._enter(OrderState(OrderStatus(self.order_status), target))
        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                actor=actor,
                notes=notes,
                revision=self.revision,
                occurred_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, actor, reason, expected_revision=None):
        if not (reason or "").strip():
            raise ValidationError({"reason": ["A reason is required to cancel an order"]})
        self._check_revision(expected_revision)

        current = OrderStatus(self.order_status)
        if current in _TERMINAL_STATES:
            raise InvalidTransition(f"Cannot transition from {current.value} to cancelled")
        if self.payment_status == PaymentStatus.PENDING_VERIFICATION.value:
            raise InvalidTransition(
                "Cancelling an order awaiting payment verification means rejecting its payment; "
                "reject the payment with a reason instead"
            )

        self._enter(
            OrderState(OrderStatus.CANCELLED, PaymentStatus(self.payment_status)),
            cancellation_reason=reason,
        )
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=current.value,
                actor=actor,
                reason=reason,
                revision=self.revision,
                occurred_at=self.updated_at,
            )
        )
