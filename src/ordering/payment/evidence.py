"""Payment evidence (QR payment screenshots) acceptance."""

import os
from uuid import uuid4

import structlog

from ordering.errors import InvalidEvidence
from ordering.payment.storage import get_store

logger = structlog.get_logger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

DEFAULT_MAX_BYTES = 5 * 1024 * 1024


def max_evidence_bytes() -> int:
    return int(os.environ.get("EVIDENCE_MAX_BYTES", DEFAULT_MAX_BYTES))


def accept_evidence(content: bytes, content_type: str, filename: str | None = None) -> str:
    """Validate a screenshot and hand it to the evidence store.

    Returns the opaque reference to pass as ``evidence_ref`` at checkout.
    Raises InvalidEvidence for empty, oversized or non-image uploads.
    """
    content_type = (content_type or "").lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidEvidence("Please upload a valid image file (JPEG, PNG, GIF or WebP)")
    if not content:
        raise InvalidEvidence("The uploaded screenshot is empty")

    limit = max_evidence_bytes()
    if len(content) > limit:
        raise InvalidEvidence(f"Screenshot must be smaller than {limit / (1024 * 1024):g}MB")

    path = f"payment-screenshots/{uuid4().hex}.{ALLOWED_CONTENT_TYPES[content_type]}"
    reference = get_store().put(content, path, content_type)

    logger.info(
        "Payment evidence accepted",
        reference=reference,
        content_type=content_type,
        size=len(content),
        original_filename=filename,
    )
    return reference
