"""Admin inbox commands."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.notification.inbox import AdminNotification


@ordering.command(part_of="AdminNotification")
class MarkNotificationRead:
    notification_id = Identifier(required=True)


@ordering.command(part_of="AdminNotification")
class MarkAllNotificationsRead:
    requested_by = String(max_length=255)


@ordering.command_handler(part_of=AdminNotification)
class AdminNotificationCommandHandler:
    @handle(MarkNotificationRead)
    def mark_read(self, command):
        repo = current_domain.repository_for(AdminNotification)
        notification = repo.get(command.notification_id)
        notification.mark_read()
        repo.add(notification)

    @handle(MarkAllNotificationsRead)
    def mark_all_read(self, command):
        repo = current_domain.repository_for(AdminNotification)
        unread = repo._dao.query.filter(read=False).all().items
        for notification in unread:
            notification.mark_read()
            repo.add(notification)
        return len(unread)
