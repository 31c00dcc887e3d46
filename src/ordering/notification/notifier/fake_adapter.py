"""Recording notifier for tests. Can be told to fail a number of times."""

from uuid import uuid4

from ordering.notification.notifier.port import AdminNotifier


class FakeNotifier(AdminNotifier):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Notifier unavailable"
        self.failures_remaining: int | None = None
        self.sent_messages: list[dict] = []
        self.attempts: int = 0

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Notifier unavailable",
        fail_times: int | None = None,
    ) -> None:
        """Fail every call, or only the next ``fail_times`` calls."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.failures_remaining = fail_times

    def notify(self, title, message, severity="info", related_id=None, related_type=None) -> dict:
        self.attempts += 1

        if not self.should_succeed:
            if self.failures_remaining is None:
                raise ConnectionError(self.failure_reason)
            if self.failures_remaining > 0:
                self.failures_remaining -= 1
                raise ConnectionError(self.failure_reason)

        self.sent_messages.append(
            {
                "title": title,
                "message": message,
                "severity": severity,
                "related_id": related_id,
                "related_type": related_type,
            }
        )
        return {"status": "sent", "message_id": f"fake_{uuid4().hex[:12]}"}
