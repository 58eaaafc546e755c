"""Per-conversation notification history."""

import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

NOTIFICATION_TYPES = ("budget_alert", "transaction_created", "daily_summary")


@dataclass
class Notification:
    """A notification shown to one conversation."""

    type: str
    title: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: secrets.token_hex(4))
    read: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "read": self.read,
        }


class NotificationHistory:
    """Keyed map of conversation key to its most recent notifications."""

    def __init__(self, max_per_key: int = 50) -> None:
        self.max_per_key = max_per_key
        self._items: dict[str, list[Notification]] = {}
        self._lock = threading.Lock()

    def add(
        self,
        key: str,
        type: str,
        title: str,
        message: str,
        timestamp: datetime | None = None,
    ) -> Notification:
        """Store a notification, dropping the oldest beyond ``max_per_key``."""
        if type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type: {type}")

        notification = Notification(type=type, title=title, message=message)
        if timestamp is not None:
            notification.timestamp = timestamp

        with self._lock:
            items = self._items.setdefault(key, [])
            items.append(notification)
            if len(items) > self.max_per_key:
                del items[: len(items) - self.max_per_key]
        return notification

    def get(self, key: str) -> list[Notification]:
        with self._lock:
            return list(self._items.get(key, []))

    def mark_as_read(self, key: str, notification_id: str) -> bool:
        """Mark one notification as read.

        Returns:
            True if the notification was found
        """
        with self._lock:
            for notification in self._items.get(key, []):
                if notification.id == notification_id:
                    notification.read = True
                    return True
        return False

    def cleanup_older_than(self, cutoff: datetime) -> int:
        """Drop notifications older than ``cutoff`` and keys left empty.

        Returns:
            Number of notifications removed
        """
        removed = 0
        with self._lock:
            for key in list(self._items):
                kept = [n for n in self._items[key] if n.timestamp > cutoff]
                removed += len(self._items[key]) - len(kept)
                if kept:
                    self._items[key] = kept
                else:
                    del self._items[key]
        return removed

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._items)
