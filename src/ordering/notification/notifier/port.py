"""Admin notifier port.

Staff are told about new orders and lifecycle changes through whichever
adapter is active. Delivery is best-effort; callers treat failures as
non-fatal.
"""

from abc import ABC, abstractmethod
from enum import Enum


class Severity(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class AdminNotifier(ABC):
    @abstractmethod
    def notify(
        self,
        title: str,
        message: str,
        severity: str = Severity.INFO.value,
        related_id: str | None = None,
        related_type: str | None = None,
    ) -> dict:
        """Deliver one alert. Returns {"status": "sent", ...}; raises on failure."""
        ...
