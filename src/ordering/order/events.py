"""Domain events for the Order aggregate.

Every lifecycle transition raises exactly one event. The status history
projection turns each one into an audit entry, and admin alerts are sent from
the same events. ``revision`` is the order revision produced by the
transition; it orders the history deterministically.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was committed as an order at checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier()
    customer_name = String(required=True)
    customer_email = String(required=True)
    payment_method = String(required=True)
    payment_status = String(required=True)
    order_status = String(required=True)
    line_count = Integer(required=True)
    subtotal = Float(required=True)
    discount_amount = Float(default=0.0)
    discount_code = String()
    total = Float(required=True)
    revision = Integer(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentApproved:
    """An admin verified the payment evidence; the order is paid and confirmed."""

    __version__ = 1

    order_id = Identifier(required=True)
    actor = String(required=True)
    notes = Text()
    revision = Integer(required=True)
    occurred_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentRejected:
    """An admin rejected the payment evidence; the order is cancelled."""

    __version__ = 1

    order_id = Identifier(required=True)
    actor = String(required=True)
    reason = Text(required=True)
    revision = Integer(required=True)
    occurred_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """The order moved forward on the fulfillment axis."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    actor = String(required=True)
    tracking_number = String()
    estimated_delivery = String()
    notes = Text()
    revision = Integer(required=True)
    occurred_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentStatusChanged:
    """Payment on a deferred-payment order was marked paid or failed."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    actor = String(required=True)
    notes = Text()
    revision = Integer(required=True)
    occurred_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled by an admin."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    actor = String(required=True)
    reason = Text(required=True)
    revision = Integer(required=True)
    occurred_at = DateTime(required=True)
