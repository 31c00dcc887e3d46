"""Discount resolution: pick the single best discount for a cart.

Two sources compete. A manual code typed by the customer is validated loudly:
any failed rule raises ``DiscountError``. Automatic codes linked to products in
the cart are validated silently and the largest wins. The larger of the two is
applied; an exact tie goes to the manual code.

Nothing here writes. Usage is consumed only when the order is committed.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.discount.discount import DiscountCode, ProductDiscountLink, normalize_code
from ordering.errors import DiscountError, DiscountRejection
from ordering.shared.money import to_money

logger = structlog.get_logger(__name__)

MANUAL = "manual"
AUTOMATIC = "automatic"


@dataclass(frozen=True)
class DiscountQuote:
    discount_id: str
    code: str
    discount_type: str
    value: float
    amount: float  # unrounded
    source: str

    @property
    def rounded_amount(self) -> float:
        return to_money(self.amount)

    def to_dict(self) -> dict:
        return {
            "discount_id": self.discount_id,
            "code": self.code,
            "discount_type": self.discount_type,
            "value": self.value,
            "amount": self.rounded_amount,
            "source": self.source,
        }


def _quote(discount, subtotal, source) -> DiscountQuote:
    return DiscountQuote(
        discount_id=str(discount.id),
        code=discount.code,
        discount_type=discount.discount_type,
        value=discount.value,
        amount=discount.amount_for(subtotal),
        source=source,
    )


def check_eligibility(discount, subtotal, now=None) -> None:
    reason = discount.rejection_reason(subtotal, now)
    if reason is not None:
        raise DiscountError(reason)


def manual_quote(code, subtotal, now=None) -> DiscountQuote:
    """Validate a customer-entered code. Raises DiscountError on any failed rule."""
    discount = current_domain.repository_for(DiscountCode).find_by_code(code)
    if discount is None:
        raise DiscountError(DiscountRejection.NOT_FOUND)
    check_eligibility(discount, subtotal, now)
    return _quote(discount, subtotal, MANUAL)


def best_automatic(lines, subtotal, now=None) -> DiscountQuote | None:
    """Largest valid product-linked discount, or None.

    Products are visited in cart order and each product's links in creation
    order. A later candidate replaces the current best only when strictly larger.
    """
    links = current_domain.repository_for(ProductDiscountLink)
    codes = current_domain.repository_for(DiscountCode)

    best = None
    seen = set()
    for line in lines:
        for link in links.for_product(line.product_id):
            discount_id = str(link.discount_code_id)
            if discount_id in seen:
                continue
            seen.add(discount_id)

            try:
                discount = codes.get(discount_id)
            except ObjectNotFoundError:
                continue
            if discount.rejection_reason(subtotal, now) is not None:
                continue

            candidate = _quote(discount, subtotal, AUTOMATIC)
            if best is None or candidate.amount > best.amount:
                best = candidate
    return best


def choose(manual: DiscountQuote | None, automatic: DiscountQuote | None) -> DiscountQuote | None:
    """Larger amount wins; an exact tie keeps the manual code."""
    if manual is None:
        return automatic
    if automatic is None:
        return manual
    return automatic if automatic.amount > manual.amount else manual


def resolve_discount(lines, subtotal, manual_code=None, now=None) -> DiscountQuote | None:
    now = now or datetime.now(UTC)

    manual = manual_quote(manual_code, subtotal, now) if normalize_code(manual_code) else None
    automatic = best_automatic(lines, subtotal, now)
    chosen = choose(manual, automatic)

    if chosen is not None:
        logger.debug(
            "Discount resolved",
            code=chosen.code,
            source=chosen.source,
            amount=chosen.amount,
            subtotal=subtotal,
        )
    return chosen
