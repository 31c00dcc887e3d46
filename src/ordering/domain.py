"""Ordering bounded context: checkout, discounts, payment verification and order lifecycle.

Converts a customer's cart into a durable order, applies the most advantageous
discount, routes payment through evidence verification and exposes the order
lifecycle to customers and staff.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
