"""Orderdesk FastAPI application.

Serves checkout, order administration, discount management and the admin
inbox. Commands are processed synchronously per request inside the ordering
domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Logging and domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the domain.toml overlay ("production" switches the
# database to PostgreSQL). ENVIRONMENT/LOG_LEVEL control log rendering.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.domain import ordering
from ordering.utils.logging import bind_request_context, clear_request_context, configure_logging

configure_logging()
ordering.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Orderdesk API",
    description="Checkout, discounts, payment verification and order lifecycle",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context and bind request details to log lines."""
    bind_request_context(path=request.url.path, admin_id=request.headers.get("x-admin-id"))
    try:
        with ordering.domain_context():
            return await call_next(request)
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api import (  # noqa: E402
    checkout_router,
    customer_router,
    discount_router,
    notification_router,
    order_router,
    register_exception_handlers,
)

app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(customer_router)
app.include_router(discount_router)
app.include_router(notification_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": ordering.name})
