"""WhatsApp webhook handling.

Verifies the payload signature and extracts inbound text messages from
WhatsApp Cloud API style notifications.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class InboundText:
    """A text message received from a chat user."""

    sender: str
    text: str
    message_id: str | None = None


def verify_signature(
    payload: bytes,
    signature_header: str | None,
    secret: str | None = None,
) -> bool:
    """Verify a webhook signature.

    Args:
        payload: Raw request body bytes
        signature_header: Value of X-Hub-Signature-256 header
        secret: App secret (None in dev mode allows 'dev' signature)

    Returns:
        True if signature is valid, False otherwise
    """
    if not signature_header:
        logger.warning("Missing webhook signature")
        return False

    # Dev mode: accept "dev" signature
    if signature_header == "dev":
        if secret is None:
            logger.debug("Dev mode: accepting 'dev' signature")
            return True
        logger.warning("Dev signature provided but secret is configured")
        return False

    if secret is None:
        logger.error("Signature verification requires a secret")
        return False

    if not signature_header.startswith("sha256="):
        logger.warning("Invalid signature format")
        return False

    expected_signature = signature_header[7:]  # Remove 'sha256=' prefix
    computed_signature = hmac.new(
        secret.encode("utf-8"),
        payload,
        hashlib.sha256,
    ).hexdigest()

    return hmac.compare_digest(expected_signature, computed_signature)


def _objects(items: Any) -> list[dict[str, Any]]:
    """The dict elements of a JSON list; anything else yields nothing."""
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def extract_text_messages(payload: dict[str, Any]) -> list[InboundText]:
    """Pull text messages out of a webhook notification.

    Non-text messages (images, status updates, reactions) are skipped.
    """
    messages: list[InboundText] = []
    for entry in _objects(payload.get("entry")):
        for change in _objects(entry.get("changes")):
            value = change.get("value")
            if not isinstance(value, dict):
                continue
            for message in _objects(value.get("messages")):
                if message.get("type") != "text" or not isinstance(message.get("text"), dict):
                    continue
                body = message["text"].get("body")
                sender = message.get("from")
                if not (isinstance(body, str) and body and isinstance(sender, str) and sender):
                    continue
                # Drop the JID suffix some gateways append to the number
                sender = sender.replace("@s.whatsapp.net", "")
                messages.append(InboundText(sender=sender, text=body, message_id=message.get("id")))
    return messages
