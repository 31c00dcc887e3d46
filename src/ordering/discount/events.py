"""Domain events for discount codes."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="DiscountCode")
class DiscountCodeCreated:
    """An admin created a new discount code."""

    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    value = Float(required=True)
    created_by = String()
    created_at = DateTime(required=True)


@ordering.event(part_of="DiscountCode")
class DiscountCodeUpdated:
    """An admin changed the terms of a discount code."""

    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)
    changed_fields = String(required=True)  # comma separated
    updated_at = DateTime(required=True)


@ordering.event(part_of="DiscountCode")
class DiscountRedeemed:
    """A placed order consumed one use of the code."""

    __version__ = 1

    discount_id = Identifier(required=True)
    code = String(required=True)
    order_id = Identifier()
    current_uses = Integer(required=True)
    redeemed_at = DateTime(required=True)
