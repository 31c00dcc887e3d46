"""Shared load-mutate-save step for admin lifecycle commands."""

import structlog
from protean.exceptions import ExpectedVersionError, TransactionError
from protean.utils.globals import current_domain

from ordering.errors import ConcurrentModification, InvalidTransition
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


def is_version_conflict(exc) -> bool:
    """True for a lost-update conflict, raised directly or wrapped at commit."""
    return isinstance(exc, ExpectedVersionError) or isinstance(exc.__cause__, ExpectedVersionError)


def apply_transition(order_id, action, mutate) -> int:
    """Load the order, apply ``mutate`` and persist it. Returns the new revision.

    A rejected transition is logged and re-raised; the order is not saved.
    Losing a race against another admin's save is reported as
    ConcurrentModification.
    """
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    loaded_revision = order.revision

    try:
        mutate(order)
    except (InvalidTransition, ConcurrentModification) as exc:
        logger.warning(
            "Order transition rejected",
            order_id=str(order_id),
            action=action,
            order_status=order.order_status,
            payment_status=order.payment_status,
            revision=order.revision,
            reason=str(exc),
        )
        raise

    try:
        repo.add(order)
    except (ExpectedVersionError, TransactionError) as exc:
        if not is_version_conflict(exc):
            raise
        logger.warning(
            "Order transition lost a concurrent update",
            order_id=str(order_id),
            action=action,
            loaded_revision=loaded_revision,
        )
        raise ConcurrentModification(loaded_revision) from exc

    logger.info(
        "Order transition applied",
        order_id=str(order_id),
        action=action,
        order_status=order.order_status,
        payment_status=order.payment_status,
        revision=order.revision,
    )
    return order.revision
