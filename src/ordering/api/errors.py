"""Translate ordering errors into HTTP responses.

Protean's own handlers (plain ValidationError -> 400, missing objects -> 404)
are registered alongside; the ordering errors are more specific and win.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, TransactionError
from protean.integrations.fastapi import register_exception_handlers as register_protean_handlers

from ordering.errors import ConcurrentModification, OrderingError, PersistenceError
from ordering.order.transitions import is_version_conflict

logger = structlog.get_logger(__name__)


async def ordering_error_handler(request: Request, exc: OrderingError) -> JSONResponse:
    logger.info(
        "Request rejected",
        path=request.url.path,
        error=exc.code,
        message=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message, "errors": exc.messages},
    )


async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


async def version_conflict_handler(request: Request, exc: Exception) -> JSONResponse:
    """Conflicts detected only when the unit of work commits."""
    if not is_version_conflict(exc):
        logger.error("Transaction failed", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=PersistenceError.status_code,
            content={"error": PersistenceError.code, "message": "The change could not be saved, please try again"},
        )
    return await ordering_error_handler(request, ConcurrentModification(expected=None))


def register_exception_handlers(app: FastAPI) -> None:
    register_protean_handlers(app)
    app.add_exception_handler(OrderingError, ordering_error_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.add_exception_handler(ExpectedVersionError, version_conflict_handler)
    app.add_exception_handler(TransactionError, version_conflict_handler)
