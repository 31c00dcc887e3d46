"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), kept separate from the
internal Protean commands.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartLineSchema(BaseModel):
    product_id: str
    title: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    image_ref: str | None = None


class CustomerSchema(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    phone: str | None = None


class AddressSchema(BaseModel):
    street: str
    city: str
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class DiscountPreviewRequest(BaseModel):
    lines: list[CartLineSchema]
    discount_code: str | None = None


class DiscountQuoteSchema(BaseModel):
    discount_id: str
    code: str
    discount_type: str
    value: float
    amount: float
    source: Literal["manual", "automatic"]


class DiscountPreviewResponse(BaseModel):
    subtotal: float
    discount: DiscountQuoteSchema | None = None
    total: float


class EvidenceUploadRequest(BaseModel):
    content_base64: str
    content_type: str
    filename: str | None = None


class EvidenceUploadResponse(BaseModel):
    evidence_ref: str


class SubmitOrderRequest(BaseModel):
    lines: list[CartLineSchema]
    customer: CustomerSchema
    shipping_address: AddressSchema
    payment_method: Literal["qr", "partner"]
    customer_id: str | None = None
    transaction_ref: str | None = None
    evidence_ref: str | None = None
    discount_code: str | None = None
    delivery_notes: str | None = None
    checkout_token: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "lines": [{"product_id": "prod-001", "title": "Dhaka Topi", "unit_price": 1000.0, "quantity": 2}],
                    "customer": {"name": "Sita Sharma", "email": "sita@example.com", "phone": "9800000000"},
                    "shipping_address": {"street": "Lazimpat 2", "city": "Kathmandu", "country": "Nepal"},
                    "payment_method": "qr",
                    "transaction_ref": "TXN123",
                    "evidence_ref": "memory://payment-screenshots/abc.png",
                    "discount_code": "SAVE10",
                }
            ]
        }
    }


class OrderIdResponse(BaseModel):
    order_id: str


# ---------------------------------------------------------------------------
# Order administration
# ---------------------------------------------------------------------------
class ApprovePaymentRequest(BaseModel):
    notes: str | None = None
    expected_revision: int | None = None


class RejectPaymentRequest(BaseModel):
    reason: str = Field(min_length=1)
    expected_revision: int | None = None


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: Literal["paid", "failed"]
    notes: str | None = None
    expected_revision: int | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str
    tracking_number: str | None = None
    estimated_delivery: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    notes: str | None = None
    expected_revision: int | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [{"status": "shipped", "tracking_number": "NP123456", "estimated_delivery": "2026-11-02"}]
        }
    }


class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1)
    expected_revision: int | None = None


class RevisionResponse(BaseModel):
    order_id: str
    revision: int


class OrderLineResponse(BaseModel):
    product_id: str
    title: str
    unit_price: float
    quantity: int
    line_total: float
    image_ref: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str | None = None
    customer: CustomerSchema
    shipping_address: AddressSchema
    lines: list[OrderLineResponse]
    subtotal: float
    discount_amount: float
    discount_code: str | None = None
    total: float
    payment_method: str
    transaction_ref: str | None = None
    evidence_ref: str | None = None
    payment_status: str
    order_status: str
    tracking_number: str | None = None
    estimated_delivery: str | None = None
    delivery_notes: str | None = None
    delivered_at: datetime | None = None
    cancellation_reason: str | None = None
    revision: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            order_id=str(order.id),
            customer_id=str(order.customer_id) if order.customer_id else None,
            customer=CustomerSchema(
                name=order.customer.name,
                email=order.customer.email,
                phone=order.customer.phone,
            ),
            shipping_address=AddressSchema(
                street=order.shipping_address.street,
                city=order.shipping_address.city,
                state=order.shipping_address.state,
                postal_code=order.shipping_address.postal_code,
                country=order.shipping_address.country,
            ),
            lines=[
                OrderLineResponse(
                    product_id=str(line.product_id),
                    title=line.title,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    line_total=line.line_total,
                    image_ref=line.image_ref,
                )
                for line in order.ordered_lines()
            ],
            subtotal=order.subtotal,
            discount_amount=order.discount_amount or 0.0,
            discount_code=order.discount_code,
            total=order.total,
            payment_method=order.payment_method,
            transaction_ref=order.transaction_ref,
            evidence_ref=order.evidence_ref,
            payment_status=order.payment_status,
            order_status=order.order_status,
            tracking_number=order.tracking_number,
            estimated_delivery=order.estimated_delivery,
            delivery_notes=order.delivery_notes,
            delivered_at=order.delivered_at,
            cancellation_reason=order.cancellation_reason,
            revision=order.revision,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderSummaryResponse(BaseModel):
    order_id: str
    customer_id: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    order_status: str
    payment_status: str
    payment_method: str | None = None
    item_count: int
    total: float | None = None
    discount_code: str | None = None
    tracking_number: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_summary(cls, summary) -> "OrderSummaryResponse":
        return cls(
            order_id=str(summary.order_id),
            customer_id=str(summary.customer_id) if summary.customer_id else None,
            customer_name=summary.customer_name,
            customer_email=summary.customer_email,
            order_status=summary.order_status,
            payment_status=summary.payment_status,
            payment_method=summary.payment_method,
            item_count=summary.item_count or 0,
            total=summary.total,
            discount_code=summary.discount_code,
            tracking_number=summary.tracking_number,
            created_at=summary.created_at,
        )


class OrderListResponse(BaseModel):
    items: list[OrderSummaryResponse]
    total: int
    page: int
    page_size: int
    pages: int


class HistoryEntryResponse(BaseModel):
    status: str
    notes: str | None = None
    actor: str | None = None
    sequence: int
    timestamp: datetime


# ---------------------------------------------------------------------------
# Discounts
# ---------------------------------------------------------------------------
class CreateDiscountRequest(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    discount_type: Literal["percentage", "fixed"]
    value: float = Field(gt=0)
    min_order_amount: float = Field(default=0.0, ge=0)
    max_uses: int | None = Field(default=None, ge=1)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    active: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "SAVE10",
                    "discount_type": "percentage",
                    "value": 10,
                    "min_order_amount": 0,
                    "max_uses": 100,
                }
            ]
        }
    }


class UpdateDiscountRequest(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=50)
    discount_type: Literal["percentage", "fixed"] | None = None
    value: float | None = Field(default=None, gt=0)
    min_order_amount: float | None = Field(default=None, ge=0)
    max_uses: int | None = Field(default=None, ge=1)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    active: bool | None = None
    clear_max_uses: bool = False
    clear_valid_until: bool = False


class DiscountIdResponse(BaseModel):
    discount_id: str


class DiscountResponse(BaseModel):
    discount_id: str
    code: str
    discount_type: str
    value: float
    min_order_amount: float
    max_uses: int | None = None
    current_uses: int
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    active: bool
    created_by: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_discount(cls, discount) -> "DiscountResponse":
        return cls(
            discount_id=str(discount.id),
            code=discount.code,
            discount_type=discount.discount_type,
            value=discount.value,
            min_order_amount=discount.min_order_amount or 0.0,
            max_uses=discount.max_uses,
            current_uses=discount.current_uses or 0,
            valid_from=discount.valid_from,
            valid_until=discount.valid_until,
            active=bool(discount.active),
            created_by=discount.created_by,
            created_at=discount.created_at,
        )


class ProductLinkResponse(BaseModel):
    product_id: str
    discount_id: str
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Admin inbox
# ---------------------------------------------------------------------------
class NotificationResponse(BaseModel):
    notification_id: str
    title: str
    message: str
    severity: str
    related_id: str | None = None
    related_type: str | None = None
    read: bool
    created_at: datetime | None = None


class StatusResponse(BaseModel):
    status: str = "ok"
