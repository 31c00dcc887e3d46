"""FastAPI routes for the Ordering domain: checkout, order administration, discounts."""

import base64
import binascii
from dataclasses import dataclass
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Query
from protean.utils.globals import current_domain

from ordering.api.schemas import (
    ApprovePaymentRequest,
    CancelOrderRequest,
    CreateDiscountRequest,
    DiscountIdResponse,
    DiscountPreviewRequest,
    DiscountPreviewResponse,
    DiscountQuoteSchema,
    DiscountResponse,
    EvidenceUploadRequest,
    EvidenceUploadResponse,
    HistoryEntryResponse,
    NotificationResponse,
    OrderIdResponse,
    OrderListResponse,
    OrderResponse,
    OrderSummaryResponse,
    ProductLinkResponse,
    RejectPaymentRequest,
    RevisionResponse,
    StatusResponse,
    SubmitOrderRequest,
    UpdateDiscountRequest,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
)
from ordering.checkout.service import preview_discount, submit_order
from ordering.discount.discount import DiscountCode, ProductDiscountLink
from ordering.discount.linking import LinkProductDiscount, UnlinkProductDiscount
from ordering.discount.management import CreateDiscountCode, DeleteDiscountCode, UpdateDiscountCode
from ordering.errors import InvalidEvidence, PersistenceError
from ordering.notification.inbox import list_notifications
from ordering.notification.management import MarkAllNotificationsRead, MarkNotificationRead
from ordering.order.cancellation import CancelOrder
from ordering.order.fulfillment import UpdateOrderStatus
from ordering.order.order import Order
from ordering.order.payment import ApprovePayment, RejectPayment, UpdatePaymentStatus
from ordering.payment.evidence import accept_evidence
from ordering.projections.order_summary import OrderFilter, orders_for_customer, search_orders
from ordering.projections.status_history import history_for
from ordering.shared.money import to_money

logger = structlog.get_logger(__name__)


def require_admin(x_admin_id: str | None = Header(default=None)) -> str:
    """Admin routes need an authenticated staff id; it becomes the actor of the change."""
    if not x_admin_id:
        raise HTTPException(status_code=403, detail="Admin access required")
    return x_admin_id


@dataclass(frozen=True)
class CustomerIdentity:
    customer_id: str | None = None
    email: str | None = None


def require_customer(
    x_customer_id: str | None = Header(default=None),
    x_customer_email: str | None = Header(default=None),
) -> CustomerIdentity:
    """The signed-in customer, or a guest identified by the email they checked out with."""
    if not (x_customer_id or x_customer_email):
        raise HTTPException(status_code=403, detail="Customer identity required")
    return CustomerIdentity(customer_id=x_customer_id, email=x_customer_email)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/discount-preview", response_model=DiscountPreviewResponse)
async def discount_preview(body: DiscountPreviewRequest) -> DiscountPreviewResponse:
    subtotal, quote = preview_discount(
        [line.model_dump() for line in body.lines],
        discount_code=body.discount_code,
    )
    discount_amount = quote.rounded_amount if quote else 0.0
    return DiscountPreviewResponse(
        subtotal=to_money(subtotal),
        discount=DiscountQuoteSchema(**quote.to_dict()) if quote else None,
        total=to_money(max(0.0, to_money(subtotal) - discount_amount)),
    )


@checkout_router.post("/evidence", status_code=201, response_model=EvidenceUploadResponse)
async def upload_evidence(body: EvidenceUploadRequest) -> EvidenceUploadResponse:
    try:
        content = base64.b64decode(body.content_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidEvidence("Screenshot content is not valid base64") from exc
    try:
        reference = accept_evidence(content, body.content_type, body.filename)
    except OSError as exc:
        logger.error("Evidence store unavailable", error=str(exc))
        raise PersistenceError("Could not store the screenshot, please try again") from exc
    return EvidenceUploadResponse(evidence_ref=reference)


@checkout_router.post("/orders", status_code=201, response_model=OrderIdResponse)
async def place_order(body: SubmitOrderRequest) -> OrderIdResponse:
    order_id = submit_order(
        lines=[line.model_dump() for line in body.lines],
        customer=body.customer.model_dump(),
        shipping_address=body.shipping_address.model_dump(),
        payment_method=body.payment_method,
        transaction_ref=body.transaction_ref,
        evidence_ref=body.evidence_ref,
        discount_code=body.discount_code,
        customer_id=body.customer_id,
        delivery_notes=body.delivery_notes,
        checkout_token=body.checkout_token,
    )
    return OrderIdResponse(order_id=order_id)


# ---------------------------------------------------------------------------
# Order Router (admin)
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"], dependencies=[Depends(require_admin)])


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    search: str | None = None,
    status: list[str] = Query(default=[]),
    payment_status: list[str] = Query(default=[]),
    payment_method: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> OrderListResponse:
    result = search_orders(
        OrderFilter(
            search=search,
            order_statuses=status,
            payment_statuses=payment_status,
            payment_method=payment_method,
            created_from=date_from,
            created_to=date_to,
            page=page,
            page_size=page_size,
        )
    )
    return OrderListResponse(
        items=[OrderSummaryResponse.from_summary(s) for s in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        pages=result.pages,
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return OrderResponse.from_order(order)


@order_router.get("/{order_id}/history", response_model=list[HistoryEntryResponse])
async def get_order_history(order_id: str) -> list[HistoryEntryResponse]:
    return [
        HistoryEntryResponse(
            status=entry.status,
            notes=entry.notes,
            actor=entry.actor,
            sequence=entry.sequence,
            timestamp=entry.timestamp,
        )
        for entry in history_for(order_id)
    ]


@order_router.put("/{order_id}/payment/approve", response_model=RevisionResponse)
async def approve_payment(
    order_id: str, body: ApprovePaymentRequest, admin_id: str = Depends(require_admin)
) -> RevisionResponse:
    command = ApprovePayment(
        order_id=order_id,
        actor=admin_id,
        notes=body.notes,
        expected_revision=body.expected_revision,
    )
    revision = current_domain.process(command, asynchronous=False)
    return RevisionResponse(order_id=order_id, revision=revision)


@order_router.put("/{order_id}/payment/reject", response_model=RevisionResponse)
async def reject_payment(
    order_id: str, body: RejectPaymentRequest, admin_id: str = Depends(require_admin)
) -> RevisionResponse:
    command = RejectPayment(
        order_id=order_id,
        actor=admin_id,
        reason=body.reason,
        expected_revision=body.expected_revision,
    )
    revision = current_domain.process(command, asynchronous=False)
    return RevisionResponse(order_id=order_id, revision=revision)


@order_router.put("/{order_id}/payment/status", response_model=RevisionResponse)
async def update_payment_status(
    order_id: str, body: UpdatePaymentStatusRequest, admin_id: str = Depends(require_admin)
) -> RevisionResponse:
    command = UpdatePaymentStatus(
        order_id=order_id,
        payment_status=body.payment_status,
        actor=admin_id,
        notes=body.notes,
        expected_revision=body.expected_revision,
    )
    revision = current_domain.process(command, asynchronous=False)
    return RevisionResponse(order_id=order_id, revision=revision)


@order_router.put("/{order_id}/status", response_model=RevisionResponse)
async def update_order_status(
    order_id: str, body: UpdateOrderStatusRequest, admin_id: str = Depends(require_admin)
) -> RevisionResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        actor=admin_id,
        tracking_number=body.tracking_number,
        estimated_delivery=body.estimated_delivery,
        notes=body.notes,
        expected_revision=body.expected_revision,
    )
    revision = current_domain.process(command, asynchronous=False)
    return RevisionResponse(order_id=order_id, revision=revision)


@order_router.put("/{order_id}/cancel", response_model=RevisionResponse)
async def cancel_order(
    order_id: str, body: CancelOrderRequest, admin_id: str = Depends(require_admin)
) -> RevisionResponse:
    command = CancelOrder(
        order_id=order_id,
        actor=admin_id,
        reason=body.reason,
        expected_revision=body.expected_revision,
    )
    revision = current_domain.process(command, asynchronous=False)
    return RevisionResponse(order_id=order_id, revision=revision)


# ---------------------------------------------------------------------------
# Customer Router
# ---------------------------------------------------------------------------
customer_router = APIRouter(prefix="/customers", tags=["customers"])


@customer_router.get("/me/orders", response_model=list[OrderSummaryResponse])
async def list_my_orders(identity: CustomerIdentity = Depends(require_customer)) -> list[OrderSummaryResponse]:
    summaries = orders_for_customer(customer_id=identity.customer_id, email=identity.email)
    return [OrderSummaryResponse.from_summary(s) for s in summaries]


@customer_router.get("/{customer_id}/orders", response_model=list[OrderSummaryResponse])
async def list_customer_orders(
    customer_id: str, identity: CustomerIdentity = Depends(require_customer)
) -> list[OrderSummaryResponse]:
    if identity.customer_id != customer_id:
        raise HTTPException(status_code=403, detail="Customers can only list their own orders")
    return [OrderSummaryResponse.from_summary(s) for s in orders_for_customer(customer_id=customer_id)]


# ---------------------------------------------------------------------------
# Discount Router (admin)
# ---------------------------------------------------------------------------
discount_router = APIRouter(prefix="/discounts", tags=["discounts"], dependencies=[Depends(require_admin)])


@discount_router.get("", response_model=list[DiscountResponse])
async def list_discounts() -> list[DiscountResponse]:
    return [DiscountResponse.from_discount(d) for d in current_domain.repository_for(DiscountCode).newest_first()]


@discount_router.post("", status_code=201, response_model=DiscountIdResponse)
async def create_discount(body: CreateDiscountRequest, admin_id: str = Depends(require_admin)) -> DiscountIdResponse:
    command = CreateDiscountCode(**body.model_dump(), created_by=admin_id)
    discount_id = current_domain.process(command, asynchronous=False)
    return DiscountIdResponse(discount_id=discount_id)


@discount_router.get("/{discount_id}", response_model=DiscountResponse)
async def get_discount(discount_id: str) -> DiscountResponse:
    return DiscountResponse.from_discount(current_domain.repository_for(DiscountCode).get(discount_id))


@discount_router.put("/{discount_id}", response_model=StatusResponse)
async def update_discount(discount_id: str, body: UpdateDiscountRequest) -> StatusResponse:
    changes = body.model_dump(exclude_unset=True)
    # An explicit null on a nullable field means "no limit"
    for field_name in ("max_uses", "valid_until"):
        if field_name in changes and changes[field_name] is None:
            changes[f"clear_{field_name}"] = True
    changes = {key: value for key, value in changes.items() if value is not None}
    command = UpdateDiscountCode(discount_id=discount_id, **changes)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@discount_router.delete("/{discount_id}", response_model=StatusResponse)
async def delete_discount(discount_id: str) -> StatusResponse:
    current_domain.process(DeleteDiscountCode(discount_id=discount_id), asynchronous=False)
    return StatusResponse()


@discount_router.get("/{discount_id}/products", response_model=list[ProductLinkResponse])
async def list_discount_products(discount_id: str) -> list[ProductLinkResponse]:
    links = current_domain.repository_for(ProductDiscountLink).for_discount(discount_id)
    return [
        ProductLinkResponse(
            product_id=str(link.product_id),
            discount_id=str(link.discount_code_id),
            created_at=link.created_at,
        )
        for link in links
    ]


@discount_router.post("/{discount_id}/products/{product_id}", status_code=201, response_model=StatusResponse)
async def link_product(discount_id: str, product_id: str) -> StatusResponse:
    current_domain.process(LinkProductDiscount(product_id=product_id, discount_id=discount_id), asynchronous=False)
    return StatusResponse()


@discount_router.delete("/{discount_id}/products/{product_id}", response_model=StatusResponse)
async def unlink_product(discount_id: str, product_id: str) -> StatusResponse:
    current_domain.process(UnlinkProductDiscount(product_id=product_id, discount_id=discount_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Admin Inbox Router
# ---------------------------------------------------------------------------
notification_router = APIRouter(
    prefix="/admin/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_admin)],
)


@notification_router.get("", response_model=list[NotificationResponse])
async def get_notifications(unread_only: bool = False) -> list[NotificationResponse]:
    return [
        NotificationResponse(
            notification_id=str(n.id),
            title=n.title,
            message=n.message,
            severity=n.severity,
            related_id=str(n.related_id) if n.related_id else None,
            related_type=n.related_type,
            read=bool(n.read),
            created_at=n.created_at,
        )
        for n in list_notifications(unread_only=unread_only)
    ]


@notification_router.put("/read-all", response_model=StatusResponse)
async def mark_all_notifications_read(admin_id: str = Depends(require_admin)) -> StatusResponse:
    current_domain.process(MarkAllNotificationsRead(requested_by=admin_id), asynchronous=False)
    return StatusResponse()


@notification_router.put("/{notification_id}/read", response_model=StatusResponse)
async def mark_notification_read(notification_id: str) -> StatusResponse:
    current_domain.process(MarkNotificationRead(notification_id=notification_id), asynchronous=False)
    return StatusResponse()
