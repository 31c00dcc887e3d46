"""Order cancellation (admin only)."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.transitions import apply_transition


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    actor = String(required=True, max_length=255)
    reason = Text(required=True)
    expected_revision = Integer()


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        return apply_transition(
            command.order_id,
            "cancel_order",
            lambda order: order.cancel(
                actor=command.actor,
                reason=command.reason,
                expected_revision=command.expected_revision,
            ),
        )
