"""Repositories for discount codes and product links."""

from ordering.discount.discount import DiscountCode, ProductDiscountLink, normalize_code
from ordering.domain import ordering


@ordering.repository(part_of=DiscountCode)
class DiscountCodeRepository:
    def find_by_code(self, code) -> DiscountCode | None:
        """Case-insensitive lookup; codes are stored uppercased."""
        normalized = normalize_code(code)
        if not normalized:
            return None
        return next(iter(self._dao.query.filter(code=normalized).all().items), None)

    def newest_first(self) -> list[DiscountCode]:
        return sorted(self._dao.query.all().items, key=lambda d: d.created_at, reverse=True)


@ordering.repository(part_of=ProductDiscountLink)
class ProductDiscountLinkRepository:
    def for_product(self, product_id) -> list[ProductDiscountLink]:
        """Links of one product, oldest first."""
        links = self._dao.query.filter(product_id=str(product_id)).all().items
        return sorted(links, key=lambda link: link.created_at)

    def for_discount(self, discount_id) -> list[ProductDiscountLink]:
        links = self._dao.query.filter(discount_code_id=str(discount_id)).all().items
        return sorted(links, key=lambda link: link.created_at)

    def find_link(self, product_id, discount_id) -> ProductDiscountLink | None:
        links = self._dao.query.filter(product_id=str(product_id), discount_code_id=str(discount_id)).all().items
        return next(iter(links), None)
