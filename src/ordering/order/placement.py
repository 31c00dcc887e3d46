"""Order placement: commit a cart as an order.

The handler runs in a single unit of work. The order insert, its first history
entry and the discount usage increment commit together, so a failure at commit
leaves none of them behind. The order summary and admin alerts follow from the
OrderPlaced event after commit.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.discount.discount import DiscountCode
from ordering.discount.resolution import resolve_discount
from ordering.domain import ordering
from ordering.errors import EmptyCart
from ordering.order.order import Order
from ordering.payment.methods import check_preconditions
from ordering.projections.status_history import record_placement
from ordering.shared.cart import cart_subtotal, parse_lines

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    order_id = Identifier()
    lines = Text(required=True)  # JSON: list of cart line dicts
    customer = Text(required=True)  # JSON: {name, email, phone}
    shipping_address = Text(required=True)  # JSON: address dict
    payment_method = String(required=True, max_length=20)
    customer_id = Identifier()
    transaction_ref = String(max_length=255)
    evidence_ref = String(max_length=500)
    discount_code = String(max_length=50)
    delivery_notes = Text()
    checkout_token = String(max_length=100)


def _as_dict(value):
    return json.loads(value) if isinstance(value, str) else (value or {})


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        repo = current_domain.repository_for(Order)

        existing = repo.find_by_checkout_token(command.checkout_token)
        if existing is not None:
            logger.info(
                "Checkout already committed, returning existing order",
                order_id=str(existing.id),
                checkout_token=command.checkout_token,
            )
            return str(existing.id)

        lines = parse_lines(command.lines)
        if not lines:
            raise EmptyCart()

        check_preconditions(command.payment_method, command.transaction_ref, command.evidence_ref)

        # The preview shown at checkout is advisory; resolve again at commit
        subtotal = cart_subtotal(lines)
        quote = resolve_discount(lines, subtotal, manual_code=command.discount_code)

        order = Order.place(
            lines=lines,
            customer=_as_dict(command.customer),
            shipping_address=_as_dict(command.shipping_address),
            payment_method=command.payment_method,
            subtotal=subtotal,
            discount=quote,
            transaction_ref=command.transaction_ref,
            evidence_ref=command.evidence_ref,
            customer_id=command.customer_id,
            delivery_notes=command.delivery_notes,
            checkout_token=command.checkout_token,
            order_id=command.order_id,
        )
        repo.add(order)
        record_placement(order)

        if quote is not None:
            discount_repo = current_domain.repository_for(DiscountCode)
            discount = discount_repo.get(quote.discount_id)
            discount.redeem(order_id=str(order.id))
            discount_repo.add(discount)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            subtotal=order.subtotal,
            discount_code=order.discount_code,
            discount_amount=order.discount_amount,
            total=order.total,
        )
        return str(order.id)
