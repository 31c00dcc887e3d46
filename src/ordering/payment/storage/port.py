"""Evidence storage port.

Payment screenshots live in blob storage outside the domain. The domain only
keeps the opaque reference returned by ``put``.
"""

from abc import ABC, abstractmethod


class EvidenceStore(ABC):
    @abstractmethod
    def put(self, content: bytes, path: str, content_type: str) -> str:
        """Store the blob at ``path`` and return a reference to it."""
        ...

    @abstractmethod
    def get(self, reference: str) -> bytes | None:
        """Fetch a stored blob, or None if the reference is unknown."""
        ...
