"""Tests for the Order lifecycle: joint state legality, transitions and revisions."""

import pytest
from ordering.errors import ConcurrentModification, InvalidTransition
from ordering.order.events import (
    OrderCancelled,
    OrderStatusChanged,
    PaymentApproved,
    PaymentRejected,
    PaymentStatusChanged,
)
from ordering.order.order import Order, OrderState, OrderStatus
from ordering.payment.methods import PaymentStatus
from ordering.shared.cart import CartLine
from protean.exceptions import ValidationError

ADMIN = "admin-001"


def _order(payment_method="partner"):
    extra = {"transaction_ref": "TXN123", "evidence_ref": "img1"} if payment_method == "qr" else {}
    order = Order.place(
        lines=[CartLine(product_id="prod-001", title="Topi", unit_price=1000.0, quantity=2)],
        customer={"name": "Sita", "email": "sita@example.com"},
        shipping_address={"street": "Lazimpat 2", "city": "Kathmandu"},
        payment_method=payment_method,
        subtotal=2000.0,
        **extra,
    )
    order._events.clear()
    return order


def _snapshot(order):
    return (order.order_status, order.payment_status, order.revision, len(order._events))


class TestOrderState:
    @pytest.mark.parametrize(
        ("order_status", "payment_status", "evidence_based", "legal"),
        [
            (OrderStatus.PROCESSING, PaymentStatus.PENDING_VERIFICATION, True, True),
            (OrderStatus.CONFIRMED, PaymentStatus.PENDING_VERIFICATION, True, False),
            (OrderStatus.CONFIRMED, PaymentStatus.PAID, True, True),
            (OrderStatus.SHIPPED, PaymentStatus.FAILED, True, False),
            (OrderStatus.CANCELLED, PaymentStatus.FAILED, True, True),
            (OrderStatus.SHIPPED, PaymentStatus.PENDING, False, True),
            (OrderStatus.SHIPPED, PaymentStatus.FAILED, False, False),
            (OrderStatus.PROCESSING, PaymentStatus.FAILED, False, True),
        ],
    )
    def test_legality(self, order_status, payment_status, evidence_based, legal):
        conflict = OrderState(order_status, payment_status).conflict(evidence_based)
        assert (conflict is None) is legal

    def test_state_property(self):
        order = _order("qr")
        assert order.state == OrderState(OrderStatus.PROCESSING, PaymentStatus.PENDING_VERIFICATION)


class TestPaymentVerification:
    def test_approve_sets_paid_and_confirmed_together(self):
        order = _order("qr")
        order.approve_payment(actor=ADMIN)

        assert order.payment_status == "paid"
        assert order.order_status == "confirmed"
        assert order.revision == 2
        assert isinstance(order._events[-1], PaymentApproved)
        assert order._events[-1].actor == ADMIN
        assert order._events[-1].revision == 2

    def test_reject_sets_failed_and_cancelled_together(self):
        order = _order("qr")
        order.reject_payment(actor=ADMIN, reason="Amount does not match")

        assert order.payment_status == "failed"
        assert order.order_status == "cancelled"
        assert order.cancellation_reason == "Amount does not match"
        assert isinstance(order._events[-1], PaymentRejected)

    def test_reject_requires_reason(self):
        order = _order("qr")
        with pytest.raises(ValidationError):
            order.reject_payment(actor=ADMIN, reason="  ")

    def test_approving_twice_fails_without_side_effects(self):
        order = _order("qr")
        order.approve_payment(actor=ADMIN)
        before = _snapshot(order)

        with pytest.raises(InvalidTransition):
            order.approve_payment(actor=ADMIN)

        assert _snapshot(order) == before

    def test_cannot_approve_deferred_payment(self):
        order = _order("partner")
        with pytest.raises(InvalidTransition):
            order.approve_payment(actor=ADMIN)

    def test_cannot_reject_after_approval(self):
        order = _order("qr")
        order.approve_payment(actor=ADMIN)
        with pytest.raises(InvalidTransition):
            order.reject_payment(actor=ADMIN, reason="Too late")


class TestFulfillment:
    def test_deferred_order_can_be_fulfilled_immediately(self):
        order = _order("partner")
        order.advance_to("shipped", actor=ADMIN, tracking_number="NP123", estimated_delivery="2026-11-02")

        assert order.order_status == "shipped"
        assert order.tracking_number == "NP123"
        assert order.estimated_delivery == "2026-11-02"
        event = order._events[-1]
        assert isinstance(event, OrderStatusChanged)
        assert (event.previous_status, event.new_status) == ("processing", "shipped")

    def test_paid_order_can_skip_steps(self):
        order = _order("qr")
        order.approve_payment(actor=ADMIN)
        order.advance_to("shipped", actor=ADMIN)
        order.advance_to("delivered", actor=ADMIN)

        assert order.order_status == "delivered"
        assert order.delivered_at is not None
        assert order.revision == 4

    def test_unverified_evidence_order_cannot_be_fulfilled(self):
        order = _order("qr")
        before = _snapshot(order)

        with pytest.raises(InvalidTransition):
            order.advance_to("shipped", actor=ADMIN)

        assert _snapshot(order) == before

    def test_cannot_move_backwards(self):
        order = _order("partner")
        order.advance_to("shipped", actor=ADMIN)
        with pytest.raises(InvalidTransition):
            order.advance_to("confirmed", actor=ADMIN)

    def test_cannot_repeat_current_status(self):
        order = _order("partner")
        order.advance_to("confirmed", actor=ADMIN)
        with pytest.raises(InvalidTransition):
            order.advance_to("confirmed", actor=ADMIN)

    def test_delivered_is_terminal(self):
        order = _order("partner")
        order.advance_to("delivered", actor=ADMIN)
        with pytest.raises(InvalidTransition):
            order.advance_to("out_for_delivery", actor=ADMIN)
        with pytest.raises(InvalidTransition):
            order.cancel(actor=ADMIN, reason="Changed mind")

    def test_cancellation_is_not_a_fulfillment_step(self):
        order = _order("partner")
        with pytest.raises(InvalidTransition):
            order.advance_to("cancelled", actor=ADMIN)

    def test_unknown_status(self):
        order = _order("partner")
        with pytest.raises(ValidationError):
            order.advance_to("lost", actor=ADMIN)

    def test_failed_deferred_payment_blocks_fulfillment(self):
        order = _order("partner")
        order.update_payment_status("failed", actor=ADMIN)
        with pytest.raises(InvalidTransition):
            order.advance_to("shipped", actor=ADMIN)


class TestDeferredPaymentStatus:
    def test_mark_paid(self):
        order = _order("partner")
        order.update_payment_status("paid", actor=ADMIN)

        assert order.payment_status == "paid"
        assert order.order_status == "processing"
        event = order._events[-1]
        assert isinstance(event, PaymentStatusChanged)
        assert (event.previous_status, event.new_status) == ("pending", "paid")

    def test_only_from_pending(self):
        order = _order("partner")
        order.update_payment_status("paid", actor=ADMIN)
        with pytest.raises(InvalidTransition):
            order.update_payment_status("failed", actor=ADMIN)

    def test_evidence_orders_must_use_approve_or_reject(self):
        order = _order("qr")
        with pytest.raises(InvalidTransition):
            order.update_payment_status("paid", actor=ADMIN)

    def test_cannot_set_pending_verification(self):
        order = _order("partner")
        with pytest.raises(InvalidTransition):
            order.update_payment_status("pending_verification", actor=ADMIN)


class TestCancellation:
    def test_cancel_keeps_payment_status(self):
        order = _order("partner")
        order.cancel(actor=ADMIN, reason="Out of stock")

        assert order.order_status == "cancelled"
        assert order.payment_status == "pending"
        assert order.cancellation_reason == "Out of stock"
        event = order._events[-1]
        assert isinstance(event, OrderCancelled)
        assert event.previous_status == "processing"

    def test_cancel_from_shipped(self):
        order = _order("partner")
        order.advance_to("shipped", actor=ADMIN)
        order.cancel(actor=ADMIN, reason="Returned to sender")
        assert order.order_status == "cancelled"

    def test_awaiting_verification_must_be_rejected_instead(self):
        order = _order("qr")
        with pytest.raises(InvalidTransition) as exc:
            order.cancel(actor=ADMIN, reason="Duplicate")

        assert "means rejecting its payment" in str(exc.value)
        assert order.order_status == "processing"
        assert order._events == []

    def test_cancelled_is_terminal(self):
        order = _order("partner")
        order.cancel(actor=ADMIN, reason="Duplicate")
        with pytest.raises(InvalidTransition):
            order.cancel(actor=ADMIN, reason="Again")


class TestRevisions:
    def test_matching_expected_revision(self):
        order = _order("qr")
        order.approve_payment(actor=ADMIN, expected_revision=1)
        assert order.revision == 2

    def test_stale_expected_revision(self):
        order = _order("qr")
        before = _snapshot(order)

        with pytest.raises(ConcurrentModification) as exc:
            order.approve_payment(actor=ADMIN, expected_revision=3)

        assert exc.value.expected == 3
        assert exc.value.actual == 1
        assert _snapshot(order) == before
