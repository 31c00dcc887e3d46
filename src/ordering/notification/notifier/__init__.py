"""Admin notifier factory.

ADMIN_NOTIFIER selects the adapter: ``inbox`` (default, persisted for the
admin dashboard) or ``fake`` (recording, for tests).
"""

import os

from ordering.notification.notifier.port import AdminNotifier

_current_notifier: AdminNotifier | None = None


def get_notifier() -> AdminNotifier:
    global _current_notifier
    if _current_notifier is None:
        adapter = os.environ.get("ADMIN_NOTIFIER", "inbox")
        if adapter == "inbox":
            from ordering.notification.inbox import InboxNotifier

            _current_notifier = InboxNotifier()
        elif adapter == "fake":
            from ordering.notification.notifier.fake_adapter import FakeNotifier

            _current_notifier = FakeNotifier()
        else:
            raise ValueError(f"Unknown admin notifier adapter: {adapter}")
    return _current_notifier


def set_notifier(notifier: AdminNotifier) -> None:
    """Override the active notifier (useful for tests)."""
    global _current_notifier
    _current_notifier = notifier


def reset_notifier() -> None:
    global _current_notifier
    _current_notifier = None
