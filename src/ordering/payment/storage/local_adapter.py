"""Evidence store backed by a local directory (EVIDENCE_DIR)."""

import os
from pathlib import Path

from ordering.payment.storage.port import EvidenceStore


class LocalEvidenceStore(EvidenceStore):
    def __init__(self, root: str | None = None) -> None:
        self.root = Path(root or os.environ.get("EVIDENCE_DIR", "evidence"))

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValueError(f"Evidence path escapes storage root: {path}")
        return target

    def put(self, content: bytes, path: str, content_type: str) -> str:  # noqa: ARG002
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        return f"file://{path}"

    def get(self, reference: str) -> bytes | None:
        if not reference.startswith("file://"):
            return None
        target = self._resolve(reference.removeprefix("file://"))
        return target.read_bytes() if target.exists() else None
