"""Notifier registry.

The fake notifier is the default; a real adapter is installed at startup
with ``set_notifier``.
"""

import structlog

from bakery.notifications.port import NotificationPort, NotificationTemplate

logger = structlog.get_logger(__name__)

_notifier: NotificationPort | None = None


def get_notifier() -> NotificationPort:
    global _notifier
    if _notifier is None:
        from bakery.notifications.fake_notifier import FakeNotifier

        _notifier = FakeNotifier()
    return _notifier


def set_notifier(notifier: NotificationPort) -> None:
    global _notifier
    _notifier = notifier


def reset_notifier() -> None:
    global _notifier
    _notifier = None


def notify(template: NotificationTemplate, recipient: str, data: dict) -> dict:
    result = get_notifier().notify(template.value, recipient, data)
    if result.get("status") == "failed":
        logger.warning("Notification not accepted", template=template.value, error=result.get("error"))
    else:
        logger.info("Notification queued", template=template.value, notification_id=result.get("notification_id"))
    return result
