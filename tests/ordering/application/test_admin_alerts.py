from datetime import UTC, datetime

from ordering.checkout.service import submit_order
from ordering.notification.alerts import AdminAlerts, send_alert
from ordering.notification.inbox import list_notifications
from ordering.notification.management import MarkAllNotificationsRead, MarkNotificationRead
from ordering.order.events import OrderPlaced, PaymentRejected
from protean import current_domain


def _placed_event(**overrides):
    fields = {
        "order_id": "ord-1",
        "customer_name": "Sita Sharma",
        "customer_email": "sita@example.com",
        "payment_method": "qr",
        "payment_status": "pending_verification",
        "order_status": "processing",
        "line_count": 1,
        "subtotal": 2000.0,
        "discount_amount": 200.0,
        "total": 1800.0,
        "revision": 1,
        "placed_at": datetime.now(UTC),
    }
    fields.update(overrides)
    return OrderPlaced(**fields)


class TestAlertMessages:
    def test_new_order_alert(self, fake_notifier):
        AdminAlerts().on_order_placed(_placed_event())

        assert len(fake_notifier.sent_messages) == 1
        sent = fake_notifier.sent_messages[0]
        assert sent["title"] == "New Order"
        assert sent["message"] == "New order from Sita Sharma - Rs. 1800.00 (qr)"
        assert sent["related_id"] == "ord-1"
        assert sent["related_type"] == "order"

    def test_rejection_alert_is_a_warning(self, fake_notifier):
        AdminAlerts().on_payment_rejected(
            PaymentRejected(
                order_id="ord-1",
                actor="admin-1",
                reason="Blurry screenshot",
                revision=2,
                occurred_at=datetime.now(UTC),
            )
        )

        sent = fake_notifier.sent_messages[0]
        assert sent["title"] == "Payment Rejected"
        assert sent["severity"] == "warning"
        assert "Blurry screenshot" in sent["message"]


class TestDeliveryRetries:
    def test_transient_failure_is_retried(self, fake_notifier):
        fake_notifier.configure(should_succeed=False, fail_times=2)

        assert send_alert("New Order", "hello", "info", "ord-1") is True
        assert fake_notifier.attempts == 3
        assert len(fake_notifier.sent_messages) == 1

    def test_gives_up_after_max_attempts(self, fake_notifier):
        fake_notifier.configure(should_succeed=False)

        assert send_alert("New Order", "hello", "info", "ord-1") is False
        assert fake_notifier.attempts == 3

    def test_attempts_follow_environment(self, fake_notifier, monkeypatch):
        monkeypatch.setenv("NOTIFY_MAX_ATTEMPTS", "1")
        fake_notifier.configure(should_succeed=False)

        assert send_alert("New Order", "hello", "info", "ord-1") is False
        assert fake_notifier.attempts == 1


def _place_order():
    return submit_order(
        lines=[{"product_id": "prod-topi", "title": "Dhaka Topi", "unit_price": 1000.0, "quantity": 1}],
        customer={"name": "Sita Sharma", "email": "sita@example.com"},
        shipping_address={"street": "Lazimpat", "city": "Kathmandu"},
        payment_method="partner",
    )


class TestAdminInbox:
    def test_unread_filter(self):
        _place_order()
        _place_order()
        first = list_notifications()[-1]

        current_domain.process(MarkNotificationRead(notification_id=first.id), asynchronous=False)

        assert len(list_notifications()) == 2
        unread = list_notifications(unread_only=True)
        assert len(unread) == 1
        assert unread[0].id != first.id

    def test_mark_all_read(self):
        _place_order()
        _place_order()

        marked = current_domain.process(MarkAllNotificationsRead(requested_by="admin-1"), asynchronous=False)

        assert marked == 2
        assert list_notifications(unread_only=True) == []
        assert all(notification.read_at is not None for notification in list_notifications())
