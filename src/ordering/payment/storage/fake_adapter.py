"""In-memory evidence store for development and tests."""

from ordering.payment.storage.port import EvidenceStore


class FakeEvidenceStore(EvidenceStore):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Storage unavailable"
        self.blobs: dict[str, tuple[bytes, str]] = {}
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Storage unavailable") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def put(self, content: bytes, path: str, content_type: str) -> str:
        self.calls.append({"method": "put", "path": path, "content_type": content_type, "size": len(content)})
        if not self.should_succeed:
            raise OSError(self.failure_reason)

        reference = f"memory://{path}"
        self.blobs[reference] = (content, content_type)
        return reference

    def get(self, reference: str) -> bytes | None:
        blob = self.blobs.get(reference)
        return blob[0] if blob else None
