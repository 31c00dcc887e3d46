"""Tests for placing an Order: pricing, payment state and captured details."""

import pytest
from ordering.discount.resolution import MANUAL, DiscountQuote
from ordering.order.events import OrderPlaced
from ordering.order.order import LINE_SCHEMA_VERSION, Order, OrderStatus
from ordering.payment.methods import PaymentStatus
from ordering.shared.cart import CartLine
from protean.exceptions import ValidationError

CUSTOMER = {"name": "Sita Sharma", "email": "sita@example.com", "phone": "9800000000"}
ADDRESS = {"street": "Lazimpat 2", "city": "Kathmandu", "country": "Nepal"}
LINES = [
    CartLine(product_id="prod-topi", title="Dhaka Topi", unit_price=1000.0, quantity=2),
    CartLine(product_id="prod-shawl", title="Pashmina Shawl", unit_price=0.0, quantity=1, image_ref="img/shawl.png"),
]


def _quote(amount, code="SAVE10"):
    return DiscountQuote(
        discount_id="disc-1",
        code=code,
        discount_type="percentage",
        value=10.0,
        amount=amount,
        source=MANUAL,
    )


def _place(payment_method="partner", discount=None, subtotal=2000.0, **overrides):
    kwargs = {
        "lines": LINES,
        "customer": CUSTOMER,
        "shipping_address": ADDRESS,
        "payment_method": payment_method,
        "subtotal": subtotal,
        "discount": discount,
    }
    if payment_method == "qr":
        kwargs.update(transaction_ref="TXN123", evidence_ref="img1")
    kwargs.update(overrides)
    return Order.place(**kwargs)


class TestOrderPlacement:
    def test_without_discount_total_equals_subtotal(self):
        order = _place()
        assert order.subtotal == 2000.0
        assert order.discount_amount == 0.0
        assert order.discount_code is None
        assert order.total == 2000.0

    def test_with_discount(self):
        order = _place(discount=_quote(200.0))
        assert order.discount_amount == 200.0
        assert order.discount_code == "SAVE10"
        assert order.total == 1800.0

    def test_amounts_are_rounded_at_persistence(self):
        order = _place(subtotal=100.005, discount=_quote(33.335))
        assert order.subtotal == 100.01
        assert order.discount_amount == 33.34
        assert order.total == 66.67

    def test_discount_equal_to_subtotal_gives_zero_total(self):
        order = _place(discount=_quote(2000.0))
        assert order.total == 0.0

    def test_deferred_payment_starts_pending(self):
        order = _place("partner")
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.order_status == OrderStatus.PROCESSING.value
        assert order.transaction_ref is None
        assert order.evidence_ref is None

    def test_evidence_payment_starts_pending_verification(self):
        order = _place("qr")
        assert order.payment_status == PaymentStatus.PENDING_VERIFICATION.value
        assert order.order_status == OrderStatus.PROCESSING.value
        assert order.transaction_ref == "TXN123"
        assert order.evidence_ref == "img1"

    def test_evidence_is_required_while_awaiting_verification(self):
        with pytest.raises(ValidationError) as exc:
            _place("qr", evidence_ref=None)
        assert "evidence_ref" in exc.value.messages

    def test_lines_keep_cart_order_and_schema_version(self):
        order = _place()
        lines = order.ordered_lines()
        assert [line.product_id for line in lines] == ["prod-topi", "prod-shawl"]
        assert [line.position for line in lines] == [1, 2]
        assert lines[0].line_total == 2000.0
        assert lines[1].image_ref == "img/shawl.png"
        assert order.line_schema_version == LINE_SCHEMA_VERSION

    def test_customer_and_address_captured(self):
        order = _place(customer_id="cust-001", delivery_notes="Call before delivery")
        assert order.customer_id == "cust-001"
        assert order.customer.email == "sita@example.com"
        assert order.shipping_address.city == "Kathmandu"
        assert order.delivery_notes == "Call before delivery"

    def test_guest_checkout_has_no_customer_id(self):
        assert _place().customer_id is None

    def test_starts_at_revision_one(self):
        assert _place().revision == 1

    def test_raises_order_placed_event(self):
        order = _place("qr", discount=_quote(200.0))
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.order_id == str(order.id)
        assert event.payment_status == "pending_verification"
        assert event.order_status == "processing"
        assert event.total == 1800.0
        assert event.line_count == 2
        assert event.revision == 1

    def test_unknown_payment_method(self):
        with pytest.raises(ValidationError):
            _place("cash")

    def test_total_must_match_subtotal_less_discount(self):
        order = _place()
        with pytest.raises(ValidationError) as exc:
            order.total = 1500.0
        assert "total" in exc.value.messages
