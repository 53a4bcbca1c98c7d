"""Notification port — what the core hands to the outbound renderer.

The core never builds message text. It names a template and passes a flat
mapping of typed values; rendering and transport live outside the engine.
"""

from abc import ABC, abstractmethod
from enum import Enum


class NotificationTemplate(Enum):
    QUOTE_SENT = "quote_sent"
    CONTRACT_SENT = "contract_sent"
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_CANCELLED = "order_cancelled"


class NotificationPort(ABC):
    @abstractmethod
    def notify(self, template: str, recipient: str, data: dict) -> dict:
        """Hand a notification to the renderer.

        Returns:
            dict with keys: notification_id, status ("queued" or "failed"), error (optional)
        """
        ...
