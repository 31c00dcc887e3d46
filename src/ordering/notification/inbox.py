"""Admin inbox: notifications persisted for the admin dashboard."""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.notification.notifier.port import AdminNotifier, Severity


@ordering.aggregate
class AdminNotification:
    title = String(required=True, max_length=255)
    message = Text(required=True)
    severity = String(choices=Severity, default=Severity.INFO.value)
    related_id = Identifier()
    related_type = String(max_length=50)
    read = Boolean(default=False)
    created_at = DateTime()
    read_at = DateTime()

    @classmethod
    def create(cls, title, message, severity=Severity.INFO.value, related_id=None, related_type=None):
        return cls(
            title=title,
            message=message,
            severity=severity,
            related_id=related_id,
            related_type=related_type,
            read=False,
            created_at=datetime.now(UTC),
        )

    def mark_read(self):
        if self.read:
            return
        self.read = True
        self.read_at = datetime.now(UTC)


class InboxNotifier(AdminNotifier):
    """Stores each alert as an AdminNotification."""

    def notify(self, title, message, severity=Severity.INFO.value, related_id=None, related_type=None) -> dict:
        notification = AdminNotification.create(
            title=title,
            message=message,
            severity=severity,
            related_id=related_id,
            related_type=related_type,
        )
        current_domain.repository_for(AdminNotification).add(notification)
        return {"status": "sent", "notification_id": str(notification.id)}


def list_notifications(unread_only=False) -> list[AdminNotification]:
    """Newest first."""
    query = current_domain.repository_for(AdminNotification)._dao.query
    notifications = (query.filter(read=False) if unread_only else query).all().items
    return sorted(notifications, key=lambda n: n.created_at, reverse=True)
