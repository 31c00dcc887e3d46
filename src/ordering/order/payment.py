"""Payment verification and payment status commands (admin only)."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.transitions import apply_transition


@ordering.command(part_of="Order")
class ApprovePayment:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=255)
    notes = Text()
    expected_revision = Integer()


@ordering.command(part_of="Order")
class RejectPayment:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=255)
    reason = Text(required=True)
    expected_revision = Integer()


@ordering.command(part_of="Order")
class UpdatePaymentStatus:
    order_id = Identifier(required=True)
    payment_status = String(required=True, max_length=30)
    actor = String(required=True, max_length=255)
    notes = Text()
    expected_revision = Integer()


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(ApprovePayment)
    def approve_payment(self, command):
        return apply_transition(
            command.order_id,
            "approve_payment",
            lambda order: order.approve_payment(
                actor=command.actor,
                notes=command.notes,
                expected_revision=command.expected_revision,
            ),
        )

    @handle(RejectPayment)
    def reject_payment(self, command):
        return apply_transition(
            command.order_id,
            "reject_payment",
            lambda order: order.reject_payment(
                actor=command.actor,
                reason=command.reason,
                expected_revision=command.expected_revision,
            ),
        )

    @handle(UpdatePaymentStatus)
    def update_payment_status(self, command):
        return apply_transition(
            command.order_id,
            "update_payment_status",
            lambda order: order.update_payment_status(
                command.payment_status,
                actor=command.actor,
                notes=command.notes,
                expected_revision=command.expected_revision,
            ),
        )
