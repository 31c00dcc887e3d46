"""Order summary: the admin order list and the customer's "my orders" view."""

from dataclasses import dataclass, field
from datetime import datetime

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderPlaced,
    OrderStatusChanged,
    PaymentApproved,
    PaymentRejected,
    PaymentStatusChanged,
)
from ordering.order.order import Order
from ordering.shared.timestamps import as_utc


@ordering.projection
class OrderSummary:
    order_id = Identifier(identifier=True, required=True)
    customer_id = Identifier()
    customer_name = String(max_length=255)
    customer_email = String(max_length=254)
    search_text = String(max_length=1000)  # lowercased id, name and email
    order_status = String(required=True, max_length=50)
    payment_status = String(required=True, max_length=50)
    payment_method = String(max_length=20)
    item_count = Integer(default=0)
    total = Float()
    discount_code = String(max_length=50)
    tracking_number = String(max_length=255)
    revision = Integer(default=1)
    created_at = DateTime()
    updated_at = DateTime()


@ordering.projector(projector_for=OrderSummary, aggregates=[Order])
class OrderSummaryProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        current_domain.repository_for(OrderSummary).add(
            OrderSummary(
                order_id=event.order_id,
                customer_id=event.customer_id,
                customer_name=event.customer_name,
                customer_email=event.customer_email,
                search_text=" ".join([str(event.order_id), event.customer_name, event.customer_email]).lower(),
                order_status=event.order_status,
                payment_status=event.payment_status,
                payment_method=event.payment_method,
                item_count=event.line_count,
                total=event.total,
                discount_code=event.discount_code,
                revision=event.revision,
                created_at=event.placed_at,
                updated_at=event.placed_at,
            )
        )

    def _update(self, event, **changes):
        repo = current_domain.repository_for(OrderSummary)
        summary = repo.get(event.order_id)
        for field_name, value in changes.items():
            setattr(summary, field_name, value)
        summary.revision = event.revision
        summary.updated_at = event.occurred_at
        repo.add(summary)

    @on(PaymentApproved)
    def on_payment_approved(self, event):
        self._update(event, order_status="confirmed", payment_status="paid")

    @on(PaymentRejected)
    def on_payment_rejected(self, event):
        self._update(event, order_status="cancelled", payment_status="failed")

    @on(OrderStatusChanged)
    def on_order_status_changed(self, event):
        self._update(event, order_status=event.new_status, tracking_number=event.tracking_number)

    @on(PaymentStatusChanged)
    def on_payment_status_changed(self, event):
        self._update(event, payment_status=event.new_status)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        self._update(event, order_status="cancelled")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
@dataclass
class OrderFilter:
    search: str | None = None
    order_statuses: list[str] = field(default_factory=list)
    payment_statuses: list[str] = field(default_factory=list)
    payment_method: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    page: int = 1
    page_size: int = 20

    def matches(self, summary) -> bool:
        if self.search and self.search.strip().lower() not in (summary.search_text or ""):
            return False
        if self.order_statuses and summary.order_status not in self.order_statuses:
            return False
        if self.payment_statuses and summary.payment_status not in self.payment_statuses:
            return False
        if self.payment_method and summary.payment_method != self.payment_method:
            return False
        created_at = as_utc(summary.created_at)
        if self.created_from and created_at < as_utc(self.created_from):
            return False
        if self.created_to and created_at > as_utc(self.created_to):
            return False
        return True


@dataclass
class OrderPage:
    items: list
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size if self.page_size else 0


def _newest_first(summaries):
    return sorted(summaries, key=lambda s: s.created_at, reverse=True)


def search_orders(criteria: OrderFilter) -> OrderPage:
    """Filter, sort newest first and paginate the admin order list."""
    summaries = current_domain.repository_for(OrderSummary)._dao.query.all().items
    matched = _newest_first(s for s in summaries if criteria.matches(s))

    page = max(1, criteria.page)
    page_size = max(1, criteria.page_size)
    start = (page - 1) * page_size
    return OrderPage(items=matched[start : start + page_size], total=len(matched), page=page, page_size=page_size)


def orders_for_customer(customer_id=None, email=None) -> list[OrderSummary]:
    """A customer's own orders, newest first. Guests are matched by email."""
    query = current_domain.repository_for(OrderSummary)._dao.query
    if customer_id:
        summaries = query.filter(customer_id=str(customer_id)).all().items
    elif email:
        summaries = query.filter(customer_email=email).all().items
    else:
        return []
    return _newest_first(summaries)
