"""Outbound message delivery providers.

This module defines the interface for delivering reply text to a chat user and
includes a development logger provider for testing.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from finchat.config import NotificationConfig
from finchat.logging_utils import redact_secrets

logger = logging.getLogger(__name__)


class MessageDeliveryProvider(ABC):
    """Abstract base class for message delivery providers."""

    @abstractmethod
    async def send_text(self, recipient: str, text: str) -> dict[str, Any]:
        """Deliver text to a recipient.

        Failures are reported in the result, never raised and never retried.

        Args:
            recipient: Conversation key (phone number or chat JID)
            text: Message body

        Returns:
            Dictionary with delivery result:
            - ok: bool - Whether the send was successful
            - message: str - Status message
            - delivery_id: str | None - Optional delivery tracking ID
        """


class DevLoggerProvider(MessageDeliveryProvider):
    """Logs messages instead of sending them.

    Used for development and testing; sent messages are kept in ``sent``.
    """

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def send_text(self, recipient: str, text: str) -> dict[str, Any]:
        logger.info(
            "DevLoggerProvider: Would send message to %s: %r",
            redact_secrets(recipient),
            text,
        )
        self.sent.append((recipient, text))
        return {
            "ok": True,
            "message": "Message logged (dev mode)",
            "delivery_id": f"dev-{len(self.sent)}",
        }


class HttpGatewayProvider(MessageDeliveryProvider):
    """Sends messages through an HTTP WhatsApp gateway.

    The gateway receives ``{"to": ..., "text": ...}`` as JSON and answers with
    an optional ``id`` for the queued message.
    """

    def __init__(self, gateway_url: str, token: str | None = None, timeout: float = 10.0) -> None:
        self.gateway_url = gateway_url
        self.token = token
        self.timeout = timeout

    async def send_text(self, recipient: str, text: str) -> dict[str, Any]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        safe_recipient = redact_secrets(recipient)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    self.gateway_url, json={"to": recipient, "text": text}, headers=headers
                )
        except httpx.HTTPError as e:
            logger.error("Gateway request failed for %s: %s", safe_recipient, e)
            return {"ok": False, "message": f"Gateway request failed: {e}", "delivery_id": None}

        if 200 <= resp.status_code < 300:
            try:
                delivery_id = resp.json().get("id")
            except ValueError:
                delivery_id = None
            logger.info("Message delivered to %s (status=%s)", safe_recipient, resp.status_code)
            return {
                "ok": True,
                "message": f"Message sent (status: {resp.status_code})",
                "delivery_id": delivery_id,
            }

        logger.warning(
            "Gateway send failed (status=%s) for %s: %s",
            resp.status_code,
            safe_recipient,
            resp.text,
        )
        return {
            "ok": False,
            "message": f"Gateway error ({resp.status_code}): {resp.text}",
            "delivery_id": None,
        }


def get_delivery_provider(config: NotificationConfig) -> MessageDeliveryProvider:
    """Build the delivery provider named in the configuration.

    - "dev" or "logger": DevLoggerProvider
    - "gateway": HttpGatewayProvider (requires gateway_url)
    """
    provider_name = (config.delivery_provider or "dev").lower()

    if provider_name == "gateway":
        if not config.gateway_url:
            logger.warning("Gateway provider selected without gateway_url; using dev logger")
            return DevLoggerProvider()
        return HttpGatewayProvider(config.gateway_url, token=config.gateway_token)

    if provider_name not in ("dev", "logger"):
        logger.warning("Unknown delivery provider %r; using dev logger", provider_name)
    return DevLoggerProvider()
