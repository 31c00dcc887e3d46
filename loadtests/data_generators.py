"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names of the API's Pydantic request schemas and
pass checkout validation (non-empty cart, valid email, positive quantities).
"""

import base64
import random
import uuid

from faker import Faker

fake = Faker()

# A tiny valid PNG header followed by padding; the API only checks type and size
_SCREENSHOT = b"\x89PNG\r\n\x1a\n" + b"\x00" * 256

PRODUCTS = [
    ("prod-dhaka-topi", "Dhaka Topi", 1000.0),
    ("prod-pashmina", "Pashmina Shawl", 2500.0),
    ("prod-singing-bowl", "Singing Bowl", 3500.0),
    ("prod-lokta-journal", "Lokta Paper Journal", 450.0),
    ("prod-thangka", "Thangka Print", 5200.0),
]


def customer_data() -> dict:
    return {
        "name": fake.name()[:255],
        "email": f"{fake.user_name()[:20]}.{uuid.uuid4().hex[:4]}@{fake.free_email_domain()}",
        "phone": fake.msisdn()[:15],
    }


def address_data() -> dict:
    return {
        "street": fake.street_address()[:255],
        "city": fake.city()[:100],
        "postal_code": fake.postcode()[:20],
        "country": "Nepal",
    }


def cart_lines(num_lines: int = 2) -> list[dict]:
    """Distinct products from the fixed catalogue, random quantities."""
    picked = random.sample(PRODUCTS, k=min(num_lines, len(PRODUCTS)))
    return [
        {"product_id": product_id, "title": title, "unit_price": price, "quantity": random.randint(1, 3)}
        for product_id, title, price in picked
    ]


def order_data(payment_method: str = "partner", **extra) -> dict:
    """Generate SubmitOrderRequest payload."""
    payload = {
        "lines": cart_lines(random.randint(1, 3)),
        "customer": customer_data(),
        "shipping_address": address_data(),
        "payment_method": payment_method,
        "customer_id": f"cust-{uuid.uuid4().hex[:8]}",
        "checkout_token": f"chk-{uuid.uuid4().hex}",
    }
    payload.update(extra)
    return payload


def evidence_data() -> dict:
    """Generate EvidenceUploadRequest payload."""
    return {
        "content_base64": base64.b64encode(_SCREENSHOT).decode(),
        "content_type": "image/png",
        "filename": f"receipt-{uuid.uuid4().hex[:6]}.png",
    }


def transaction_ref() -> str:
    return f"TXN{uuid.uuid4().hex[:10].upper()}"


def discount_data(max_uses: int | None = None) -> dict:
    """Generate CreateDiscountRequest payload with a unique code."""
    return {
        "code": f"LT{uuid.uuid4().hex[:8].upper()}",
        "discount_type": random.choice(["percentage", "fixed"]),
        "value": random.choice([5, 10, 15]),
        "min_order_amount": 0,
        "max_uses": max_uses,
    }


def shipment_data() -> dict:
    """Generate UpdateOrderStatusRequest payload for shipping."""
    return {
        "status": "shipped",
        "tracking_number": f"NP{uuid.uuid4().hex[:10].upper()}",
        "estimated_delivery": fake.future_date(end_date="+14d").isoformat(),
    }
