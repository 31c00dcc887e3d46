"""Status history: insert-only audit trail of order lifecycle transitions.

One entry per successful transition. Entries are never updated or deleted;
``sequence`` is the order revision the transition produced, so reading an
order's history back is deterministic.

The "Order placed" entry is written by the placement handler inside the same
unit of work as the order itself. Later transitions are projected from their
events.
"""

import uuid

from protean.core.projector import on
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderStatusChanged,
    PaymentApproved,
    PaymentRejected,
    PaymentStatusChanged,
)
from ordering.order.order import Order


@ordering.projection
class StatusHistoryEntry:
    entry_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    notes = Text()
    actor = String(max_length=255)
    sequence = Integer(required=True)
    timestamp = DateTime(required=True)


def _append(order_id, status, notes, sequence, timestamp, actor=None):
    current_domain.repository_for(StatusHistoryEntry).add(
        StatusHistoryEntry(
            entry_id=str(uuid.uuid4()),
            order_id=order_id,
            status=status,
            notes=notes,
            actor=actor,
            sequence=sequence,
            timestamp=timestamp,
        )
    )


def _with_admin_notes(summary, notes):
    return f"{summary} - {notes}" if notes else summary


def record_placement(order):
    _append(str(order.id), order.order_status, "Order placed", order.revision, order.created_at)


@ordering.projector(projector_for=StatusHistoryEntry, aggregates=[Order])
class StatusHistoryProjector:
    @on(PaymentApproved)
    def on_payment_approved(self, event):
        _append(
            event.order_id,
            "confirmed",
            _with_admin_notes("Payment verified and approved by admin", event.notes),
            event.revision,
            event.occurred_at,
            actor=event.actor,
        )

    @on(PaymentRejected)
    def on_payment_rejected(self, event):
        _append(
            event.order_id,
            "cancelled",
            f"Payment rejected by admin: {event.reason}",
            event.revision,
            event.occurred_at,
            actor=event.actor,
        )

    @on(OrderStatusChanged)
    def on_order_status_changed(self, event):
        notes = f"Status updated to {event.new_status}"
        if event.tracking_number:
            notes += f" - Tracking: {event.tracking_number}"
        _append(
            event.order_id,
            event.new_status,
            _with_admin_notes(notes, event.notes),
            event.revision,
            event.occurred_at,
            actor=event.actor,
        )

    @on(PaymentStatusChanged)
    def on_payment_status_changed(self, event):
        _append(
            event.order_id,
            f"payment_{event.new_status}",
            _with_admin_notes(f"Payment status updated to {event.new_status} by admin", event.notes),
            event.revision,
            event.occurred_at,
            actor=event.actor,
        )

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        _append(
            event.order_id,
            "cancelled",
            f"Order cancelled: {event.reason}",
            event.revision,
            event.occurred_at,
            actor=event.actor,
        )


def history_for(order_id) -> list[StatusHistoryEntry]:
    """All entries for an order, in transition order."""
    entries = current_domain.repository_for(StatusHistoryEntry)._dao.query.filter(order_id=str(order_id)).all().items
    return sorted(entries, key=lambda entry: (entry.sequence, entry.timestamp))
