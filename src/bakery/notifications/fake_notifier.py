"""Fake notifier — records notifications in memory for test assertions."""

from uuid import uuid4

from bakery.notifications.port import NotificationPort


class FakeNotifier(NotificationPort):
    def __init__(self):
        self.sent: list[dict] = []

    def notify(self, template: str, recipient: str, data: dict) -> dict:
        notification_id = f"ntf-{uuid4().hex[:12]}"
        self.sent.append(
            {
                "notification_id": notification_id,
                "template": template,
                "recipient": recipient,
                "data": data,
            }
        )
        return {"notification_id": notification_id, "status": "queued"}

    def sent_with(self, template: str) -> list[dict]:
        return [n for n in self.sent if n["template"] == template]

    def reset(self):
        self.sent.clear()
