import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import (
    checkout_router,
    customer_router,
    discount_router,
    notification_router,
    order_router,
    register_exception_handlers,
)

ADMIN = {"X-Admin-Id": "admin-1"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(customer_router)
    app.include_router(discount_router)
    app.include_router(notification_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def admin():
    return dict(ADMIN)


@pytest.fixture()
def order_payload():
    return {
        "lines": [{"product_id": "prod-topi", "title": "Dhaka Topi", "unit_price": 1000.0, "quantity": 2}],
        "customer": {"name": "Sita Sharma", "email": "sita@example.com", "phone": "9800000000"},
        "shipping_address": {"street": "Lazimpat 2", "city": "Kathmandu", "country": "Nepal"},
        "payment_method": "partner",
    }
