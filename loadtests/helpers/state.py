"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance keeps its own state; nothing is shared across
users. State holds ids returned by earlier requests so follow-up requests
can reference them.
"""

from dataclasses import dataclass


@dataclass
class OrderState:
    """Tracks a single order through its lifecycle."""

    order_id: str | None = None
    revision: int = 1
    evidence_ref: str | None = None
    current_status: str = "processing"


@dataclass
class DiscountState:
    """Tracks a discount code an admin user created."""

    discount_id: str | None = None
    code: str | None = None
