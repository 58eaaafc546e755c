"""Logging utilities with redaction and conversation context.

Provides:
- Redaction of phone numbers, bearer tokens and authorization headers
- Structured logging helpers
- Conversation ID context management
"""

import logging
import re
from contextvars import ContextVar
from typing import Any

# Context variable for the conversation being processed (async-safe)
_conversation_id_var: ContextVar[str | None] = ContextVar("conversation_id", default=None)

# Phone numbers and WhatsApp JIDs: keep the last 4 digits
PHONE_PATTERN = re.compile(r"\+?\d{6,}(\d{4})(@s\.whatsapp\.net)?")

BEARER_PATTERN = re.compile(r"(Bearer\s+)([A-Za-z0-9._\-]+)", re.IGNORECASE)

# Pattern for Authorization header values
AUTH_HEADER_PATTERN = re.compile(
    r"(Authorization[:\s]+)(?!Bearer\b)([^\s,;]+)",
    re.IGNORECASE,
)


def redact_secrets(text: str | None) -> str:
    """Redact phone numbers and credentials from text.

    Args:
        text: Text that may contain sensitive values

    Returns:
        Text with sensitive values redacted
    """
    if text is None:
        return ""

    if not isinstance(text, str):
        text = str(text)

    text = BEARER_PATTERN.sub(r"\1***REDACTED***", text)
    text = AUTH_HEADER_PATTERN.sub(r"\1***REDACTED***", text)
    text = PHONE_PATTERN.sub(r"***\1", text)

    return text


def set_conversation_id(conversation_id: str | None) -> None:
    """Set the conversation ID for the current context."""
    _conversation_id_var.set(conversation_id)


def get_conversation_id() -> str | None:
    """Get the conversation ID for the current context."""
    return _conversation_id_var.get()


def clear_conversation_id() -> None:
    """Clear the conversation ID from the current context."""
    _conversation_id_var.set(None)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **kwargs: Any,
) -> None:
    """Log a message with structured context (conversation, command, etc.).

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, logging.ERROR, etc.)
        message: Log message
        **kwargs: Additional structured fields to include
    """
    parts = [message]

    conversation_id = get_conversation_id()
    if conversation_id:
        parts.append(f"conversation={redact_secrets(conversation_id)}")

    for key, value in kwargs.items():
        parts.append(f"{key}={redact_secrets(str(value))}")

    logger.log(level, " | ".join(parts))


def log_info(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    log_with_context(logger, logging.INFO, message, **kwargs)


def log_warning(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    log_with_context(logger, logging.WARNING, message, **kwargs)


def log_error(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    log_with_context(logger, logging.ERROR, message, **kwargs)


def log_debug(logger: logging.Logger, message: str, **kwargs: Any) -> None:
    log_with_context(logger, logging.DEBUG, message, **kwargs)
