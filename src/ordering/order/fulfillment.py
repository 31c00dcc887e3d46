"""Fulfillment status updates (admin only)."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.transitions import apply_transition


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=30)
    actor = String(required=True, max_length=255)
    tracking_number = String(max_length=255)
    estimated_delivery = String(max_length=10)  # ISO date string
    notes = Text()
    expected_revision = Integer()


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        return apply_transition(
            command.order_id,
            "update_order_status",
            lambda order: order.advance_to(
                command.status,
                actor=command.actor,
                tracking_number=command.tracking_number,
                estimated_delivery=command.estimated_delivery,
                notes=command.notes,
                expected_revision=command.expected_revision,
            ),
        )
