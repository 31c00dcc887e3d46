"""Evidence store factory.

EVIDENCE_STORE selects the adapter: ``fake`` (default, in memory) or
``local`` (files under EVIDENCE_DIR).
"""

import os

from ordering.payment.storage.port import EvidenceStore

_current_store: EvidenceStore | None = None


def get_store() -> EvidenceStore:
    global _current_store
    if _current_store is None:
        adapter = os.environ.get("EVIDENCE_STORE", "fake")
        if adapter == "fake":
            from ordering.payment.storage.fake_adapter import FakeEvidenceStore

            _current_store = FakeEvidenceStore()
        elif adapter == "local":
            from ordering.payment.storage.local_adapter import LocalEvidenceStore

            _current_store = LocalEvidenceStore()
        else:
            raise ValueError(f"Unknown evidence store adapter: {adapter}")
    return _current_store


def set_store(store: EvidenceStore) -> None:
    """Override the active store (useful for tests)."""
    global _current_store
    _current_store = store


def reset_store() -> None:
    global _current_store
    _current_store = None
