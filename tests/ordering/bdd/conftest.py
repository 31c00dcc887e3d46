"""Shared BDD fixtures and step definitions for checkout and order lifecycle."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.checkout.service import submit_order
from ordering.discount.discount import DiscountCode
from ordering.errors import OrderingError
from ordering.order.order import Order
from ordering.projections.status_history import history_for
from protean import current_domain
from pytest_bdd import given, parsers, then

CUSTOMER = {"name": "Sita Sharma", "email": "sita@example.com", "phone": "9800000000"}
ADDRESS = {"street": "Lazimpat 2", "city": "Kathmandu", "country": "Nepal"}


def _product_id(title):
    return "prod-" + title.lower().replace(" ", "-")


def checkout_with(cart, outcome, payment_method, **kwargs):
    """Run checkout and record either the order id or the business error."""
    try:
        outcome["order_id"] = submit_order(
            lines=cart,
            customer=CUSTOMER,
            shipping_address=ADDRESS,
            payment_method=payment_method,
            **kwargs,
        )
    except OrderingError as exc:
        outcome["error"] = exc
    return outcome


def attempt(outcome, command):
    """Process an admin command, capturing a rejected transition instead of raising."""
    try:
        current_domain.process(command, asynchronous=False)
    except OrderingError as exc:
        outcome["error"] = exc


@pytest.fixture()
def outcome():
    return {"order_id": None, "error": None}


@pytest.fixture()
def checkout(cart, outcome):
    def _checkout(payment_method, **kwargs):
        return checkout_with(cart, outcome, payment_method, **kwargs)

    return _checkout


@pytest.fixture()
def admin_action(outcome):
    def _act(command):
        attempt(outcome, command)

    return _act


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a cart with {quantity:d} x "{title}" at {price:g}'), target_fixture="cart")
def _(quantity, title, price):
    return [{"product_id": _product_id(title), "title": title, "unit_price": price, "quantity": quantity}]


@given(parsers.cfparse('an active {discount_type} discount "{code}" worth {value:g}'))
def _(make_discount, discount_type, code, value):
    make_discount(code=code, discount_type=discount_type, value=value)


@given(parsers.cfparse('an active {discount_type} discount "{code}" worth {value:g} linked to the cart product'))
def _(make_discount, link_product, cart, discount_type, code, value):
    discount = make_discount(code=code, discount_type=discount_type, value=value)
    link_product(cart[0]["product_id"], discount)


@given(parsers.cfparse('an expired {discount_type} discount "{code}" worth {value:g}'))
def _(make_discount, discount_type, code, value):
    now = datetime.now(UTC)
    make_discount(
        code=code,
        discount_type=discount_type,
        value=value,
        valid_from=now - timedelta(days=30),
        valid_until=now - timedelta(days=1),
    )


@given(
    parsers.cfparse('the customer checked out with "{method}" payment, transaction "{txn}" and screenshot "{evidence}"'),
    target_fixture="outcome",
)
def _(cart, outcome, method, txn, evidence):
    checkout_with(cart, outcome, method, transaction_ref=txn, evidence_ref=evidence)
    assert outcome["error"] is None
    return outcome


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
def _order(outcome):
    return current_domain.repository_for(Order).get(outcome["order_id"])


@then("the order is placed")
def _(outcome):
    assert outcome["error"] is None, f"Checkout failed: {outcome['error']}"
    assert outcome["order_id"] is not None


@then(parsers.cfparse("the order totals are {subtotal:g} less {discount:g} equals {total:g}"))
def _(outcome, subtotal, discount, total):
    order = _order(outcome)
    assert order.subtotal == subtotal
    assert order.discount_amount == discount
    assert order.total == total


@then(parsers.cfparse('the order status is "{status}" with payment "{payment_status}"'))
def _(outcome, status, payment_status):
    order = _order(outcome)
    assert order.order_status == status
    assert order.payment_status == payment_status


@then(parsers.cfparse('the status history reads "{notes}"'))
def _(outcome, notes):
    assert [entry.notes for entry in history_for(outcome["order_id"])] == notes.split(", ")


@then(parsers.cfparse('discount "{code}" has been used {count:d} time'))
@then(parsers.cfparse('discount "{code}" has been used {count:d} times'))
def _(code, count):
    discount = current_domain.repository_for(DiscountCode).find_by_code(code)
    assert discount.current_uses == count


@then(parsers.cfparse('checkout fails with "{code}"'))
@then(parsers.cfparse('the order action fails with "{code}"'))
def _(outcome, code):
    assert outcome["error"] is not None, "Expected the action to be rejected"
    assert outcome["error"].code == code


@then("no order exists")
def _():
    assert current_domain.repository_for(Order)._dao.query.all().items == []


@then(parsers.cfparse("the order is at revision {revision:d}"))
def _(outcome, revision):
    assert _order(outcome).revision == revision
