"""Ordering domain API package."""

from ordering.api.errors import register_exception_handlers
from ordering.api.routes import (
    checkout_router,
    customer_router,
    discount_router,
    notification_router,
    order_router,
)

__all__ = [
    "checkout_router",
    "customer_router",
    "discount_router",
    "notification_router",
    "order_router",
    "register_exception_handlers",
]
