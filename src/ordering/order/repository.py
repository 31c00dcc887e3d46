"""Repository for the Order aggregate."""

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def find_by_checkout_token(self, checkout_token) -> Order | None:
        """The order already placed for this checkout attempt, if any."""
        if not checkout_token:
            return None
        return next(iter(self._dao.query.filter(checkout_token=checkout_token).all().items), None)
