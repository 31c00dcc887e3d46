"""Discount codes and the product links that make them apply automatically.

A ``DiscountCode`` is either typed in by the customer at checkout or linked to
one or more products through ``ProductDiscountLink``, in which case it applies
without a code whenever a linked product is in the cart.

Usage is capped by ``max_uses``. The counter only moves through ``redeem()``,
which refuses to pass the cap.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from ordering.discount.events import DiscountCodeCreated, DiscountCodeUpdated, DiscountRedeemed
from ordering.domain import ordering
from ordering.errors import DiscountError, DiscountRejection
from ordering.shared.timestamps import as_utc


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


# Terms an admin may change after creation. current_uses is never editable.
_EDITABLE_FIELDS = (
    "code",
    "discount_type",
    "value",
    "min_order_amount",
    "max_uses",
    "valid_from",
    "valid_until",
    "active",
)


def normalize_code(code):
    return (code or "").strip().upper()


@ordering.aggregate
class DiscountCode:
    code = String(required=True, max_length=50)
    discount_type = String(choices=DiscountType, required=True)
    value = Float(required=True)
    min_order_amount = Float(default=0.0, min_value=0.0)
    max_uses = Integer(min_value=1)  # None means unlimited
    current_uses = Integer(default=0, min_value=0)
    valid_from = DateTime()
    valid_until = DateTime()
    active = Boolean(default=True)
    created_by = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def value_must_fit_discount_type(self):
        if self.value is None or self.value <= 0:
            raise ValidationError({"value": ["Discount value must be greater than zero"]})
        if self.discount_type == DiscountType.PERCENTAGE.value and self.value > 100:
            raise ValidationError({"value": ["Percentage discounts cannot exceed 100"]})

    @invariant.post
    def usage_must_not_exceed_cap(self):
        if self.max_uses is not None and (self.current_uses or 0) > self.max_uses:
            raise ValidationError({"current_uses": ["Usage cannot exceed the maximum number of uses"]})

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from and self.valid_until and as_utc(self.valid_until) <= as_utc(self.valid_from):
            raise ValidationError({"valid_until": ["Expiry must be after the start of validity"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        code,
        discount_type,
        value,
        min_order_amount=0.0,
        max_uses=None,
        valid_from=None,
        valid_until=None,
        active=True,
        created_by=None,
    ):
        now = datetime.now(UTC)
        discount = cls(
            code=normalize_code(code),
            discount_type=discount_type,
            value=value,
            min_order_amount=min_order_amount or 0.0,
            max_uses=max_uses,
            current_uses=0,
            valid_from=valid_from or now,
            valid_until=valid_until,
            active=active,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        discount.raise_(
            DiscountCodeCreated(
                discount_id=str(discount.id),
                code=discount.code,
                discount_type=discount.discount_type,
                value=discount.value,
                created_by=created_by,
                created_at=now,
            )
        )
        return discount

    # -------------------------------------------------------------------
    # Eligibility and pricing
    # -------------------------------------------------------------------
    def rejection_reason(self, subtotal, now=None):
        """Return the first rule the code fails for this subtotal, or None."""
        now = now or datetime.now(UTC)
        if not self.active:
            return DiscountRejection.INACTIVE
        if self.valid_from and as_utc(self.valid_from) > now:
            return DiscountRejection.NOT_YET_VALID
        if self.valid_until and as_utc(self.valid_until) < now:
            return DiscountRejection.EXPIRED
        if self.max_uses is not None and (self.current_uses or 0) >= self.max_uses:
            return DiscountRejection.USAGE_EXCEEDED
        if self.min_order_amount and subtotal < self.min_order_amount:
            return DiscountRejection.MINIMUM_NOT_MET
        return None

    def amount_for(self, subtotal):
        """Unrounded discount for the subtotal, never more than the subtotal itself."""
        if self.discount_type == DiscountType.PERCENTAGE.value:
            amount = subtotal * self.value / 100
        else:
            amount = self.value
        return max(0.0, min(amount, subtotal))

    # -------------------------------------------------------------------
    # Usage
    # -------------------------------------------------------------------
    def redeem(self, order_id=None):
        """Consume one use. Refuses once the cap is reached."""
        if self.max_uses is not None and (self.current_uses or 0) >= self.max_uses:
            raise DiscountError(DiscountRejection.USAGE_EXCEEDED)

        now = datetime.now(UTC)
        self.current_uses = (self.current_uses or 0) + 1
        self.updated_at = now

        self.raise_(
            DiscountRedeemed(
                discount_id=str(self.id),
                code=self.code,
                order_id=order_id,
                current_uses=self.current_uses,
                redeemed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def update(self, **changes):
        changes = {key: value for key, value in changes.items() if key in _EDITABLE_FIELDS}
        if not changes:
            return

        if "code" in changes:
            changes["code"] = normalize_code(changes["code"])
        if "max_uses" in changes and changes["max_uses"] is not None and changes["max_uses"] < (self.current_uses or 0):
            raise ValidationError({"max_uses": [f"Code has already been used {self.current_uses} times"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            for field_name, value in changes.items():
                setattr(self, field_name, value)
            self.updated_at = now

        self.raise_(
            DiscountCodeUpdated(
                discount_id=str(self.id),
                code=self.code,
                changed_fields=",".join(sorted(changes)),
                updated_at=now,
            )
        )


@ordering.aggregate
class ProductDiscountLink:
    """Associates a product with a discount code for codeless application."""

    product_id = Identifier(required=True)
    discount_code_id = Identifier(required=True)
    created_at = DateTime()

    @classmethod
    def create(cls, product_id, discount_code_id):
        return cls(
            product_id=product_id,
            discount_code_id=discount_code_id,
            created_at=datetime.now(UTC),
        )
