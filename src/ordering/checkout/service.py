"""Checkout entry points used by the storefront.

``submit_order`` is the durability boundary: when it returns, the order
exists, and when it raises, it does not. Business rejections (empty cart, bad
discount, missing payment evidence) propagate unchanged. A failure inside the
placement unit of work rolls back the order, its first history entry and the
discount usage together and surfaces as PersistenceError. A failure in the
processing that follows the commit is logged and does not change the outcome.
"""

import json
import uuid

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.discount.resolution import DiscountQuote, resolve_discount
from ordering.errors import PersistenceError
from ordering.order.order import Order
from ordering.order.placement import PlaceOrder
from ordering.shared.cart import cart_subtotal, dump_lines, parse_lines

logger = structlog.get_logger(__name__)


def _committed_order_id(order_id, checkout_token):
    repo = current_domain.repository_for(Order)
    if repo._dao.query.filter(id=order_id).all().items:
        return order_id
    existing = repo.find_by_checkout_token(checkout_token)
    return str(existing.id) if existing is not None else None


def submit_order(
    lines,
    customer,
    shipping_address,
    payment_method,
    transaction_ref=None,
    evidence_ref=None,
    discount_code=None,
    customer_id=None,
    delivery_notes=None,
    checkout_token=None,
) -> str:
    """Place an order and return its id."""
    order_id = str(uuid.uuid4())
    command = PlaceOrder(
        order_id=order_id,
        lines=dump_lines(lines),
        customer=json.dumps(customer),
        shipping_address=json.dumps(shipping_address),
        payment_method=payment_method,
        customer_id=customer_id,
        transaction_ref=transaction_ref,
        evidence_ref=evidence_ref,
        discount_code=discount_code,
        delivery_notes=delivery_notes,
        checkout_token=checkout_token,
    )

    try:
        return current_domain.process(command, asynchronous=False)
    except ValidationError as exc:
        # A concurrent submission with the same token committed first
        if checkout_token and "checkout_token" in exc.messages:
            existing = current_domain.repository_for(Order).find_by_checkout_token(checkout_token)
            if existing is not None:
                logger.info(
                    "Checkout already committed concurrently",
                    order_id=str(existing.id),
                    checkout_token=checkout_token,
                )
                return str(existing.id)
        raise
    except Exception as exc:
        committed = _committed_order_id(order_id, checkout_token)
        if committed is not None:
            logger.error(
                "Order committed but post-commit processing failed",
                order_id=committed,
                checkout_token=checkout_token,
                error=str(exc),
                exc_info=True,
            )
            return committed

        logger.error(
            "Order placement failed at commit",
            customer_id=customer_id,
            payment_method=payment_method,
            checkout_token=checkout_token,
            error=str(exc),
            exc_info=True,
        )
        raise PersistenceError() from exc


def preview_discount(lines, discount_code=None) -> tuple[float, DiscountQuote | None]:
    """Subtotal and the discount the checkout would apply right now. No side effects."""
    cart_lines = parse_lines(lines)
    subtotal = cart_subtotal(cart_lines)
    return subtotal, resolve_discount(cart_lines, subtotal, manual_code=discount_code)
