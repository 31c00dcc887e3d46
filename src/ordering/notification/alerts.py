"""Admin alerts for order lifecycle events.

Runs after the order is committed. Delivery is retried a bounded number of
times (NOTIFY_MAX_ATTEMPTS, default 3); a notifier that keeps failing is
logged and the alert dropped. Failures never reach the customer or admin
who triggered the event.
"""

import os

import structlog
from protean import handle

from ordering.domain import ordering
from ordering.notification.notifier import get_notifier
from ordering.notification.notifier.port import Severity
from ordering.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentApproved,
    PaymentRejected,
    PaymentStatusChanged,
)
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


def _max_attempts() -> int:
    return max(1, int(os.environ.get("NOTIFY_MAX_ATTEMPTS", 3)))


def send_alert(title, message, severity, order_id) -> bool:
    """Try to deliver an alert. Returns False if every attempt failed."""
    attempts = _max_attempts()
    for attempt in range(1, attempts + 1):
        try:
            get_notifier().notify(
                title=title,
                message=message,
                severity=severity,
                related_id=str(order_id),
                related_type="order",
            )
            return True
        except Exception as exc:
            logger.warning(
                "Admin notification attempt failed",
                order_id=str(order_id),
                title=title,
                attempt=attempt,
                max_attempts=attempts,
                error=str(exc),
            )

    logger.error("Admin notification dropped", order_id=str(order_id), title=title)
    return False


@ordering.event_handler(part_of=Order)
class AdminAlerts:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        send_alert(
            "New Order",
            f"New order from {event.customer_name} - Rs. {event.total:.2f} ({event.payment_method})",
            Severity.INFO.value,
            event.order_id,
        )

    @handle(PaymentApproved)
    def on_payment_approved(self, event: PaymentApproved) -> None:
        send_alert(
            "Payment Verified",
            f"Payment for order {event.order_id} was approved by {event.actor}",
            Severity.SUCCESS.value,
            event.order_id,
        )

    @handle(PaymentRejected)
    def on_payment_rejected(self, event: PaymentRejected) -> None:
        send_alert(
            "Payment Rejected",
            f"Payment for order {event.order_id} was rejected: {event.reason}",
            Severity.WARNING.value,
            event.order_id,
        )

    @handle(OrderStatusChanged)
    def on_order_status_changed(self, event: OrderStatusChanged) -> None:
        send_alert(
            "Order Status Updated",
            f"Order {event.order_id} moved from {event.previous_status} to {event.new_status}",
            Severity.INFO.value,
            event.order_id,
        )

    @handle(PaymentStatusChanged)
    def on_payment_status_changed(self, event: PaymentStatusChanged) -> None:
        severity = Severity.SUCCESS.value if event.new_status == "paid" else Severity.WARNING.value
        send_alert(
            "Payment Status Updated",
            f"Payment for order {event.order_id} marked {event.new_status}",
            severity,
            event.order_id,
        )

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        send_alert(
            "Order Cancelled",
            f"Order {event.order_id} was cancelled: {event.reason}",
            Severity.WARNING.value,
            event.order_id,
        )
