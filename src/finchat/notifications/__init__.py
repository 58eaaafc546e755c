"""Notification history and outbound delivery."""

from finchat.notifications.history import Notification, NotificationHistory
from finchat.notifications.provider import (
    DevLoggerProvider,
    HttpGatewayProvider,
    MessageDeliveryProvider,
    get_delivery_provider,
)
from finchat.notifications.service import NotificationService

__all__ = [
    "DevLoggerProvider",
    "HttpGatewayProvider",
    "MessageDeliveryProvider",
    "Notification",
    "NotificationHistory",
    "NotificationService",
    "get_delivery_provider",
]
