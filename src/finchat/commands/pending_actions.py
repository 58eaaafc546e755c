"""Pending confirmation storage keyed by conversation."""

import json
import logging
import secrets
import string
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import redis

from finchat.logging_utils import log_debug

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_uppercase + string.digits


def generate_confirmation_token(length: int = 6) -> str:
    """Generate a short uppercase alphanumeric code the user types back."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


@dataclass
class PendingAction:
    """A mutating action awaiting confirmation."""

    kind: str  # "expense", "income", "edit" or "delete"
    payload: dict[str, Any]
    created_at: datetime
    token: str = field(default_factory=generate_confirmation_token)

    def is_expired(self, now: datetime, ttl_seconds: int) -> bool:
        """Check whether the confirmation window has elapsed."""
        return now - self.created_at > timedelta(seconds=ttl_seconds)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "kind": self.kind,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
            "token": self.token,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PendingAction":
        """Rebuild a pending action from ``to_dict`` output."""
        return cls(
            kind=data["kind"],
            payload=data["payload"],
            created_at=datetime.fromisoformat(data["created_at"]),
            token=data["token"],
        )


class PendingActionStore(ABC):
    """Storage of at most one pending action per conversation key."""

    @abstractmethod
    def get(self, key: str) -> PendingAction | None:
        """Return the pending action for a key, expired or not."""

    @abstractmethod
    def set(self, key: str, action: PendingAction) -> None:
        """Store an action for a key, replacing any existing one."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove the action for a key.

        Returns:
            True if an action was removed
        """


class InMemoryPendingActionStore(PendingActionStore):
    """Process-local store backed by a dict."""

    def __init__(self) -> None:
        self._pending: dict[str, PendingAction] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> PendingAction | None:
        with self._lock:
            return self._pending.get(key)

    def set(self, key: str, action: PendingAction) -> None:
        with self._lock:
            self._pending[key] = action

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._pending.pop(key, None) is not None

    def purge_expired(self, now: datetime, ttl_seconds: int) -> int:
        """Remove every expired action.

        Returns:
            Number of actions removed
        """
        with self._lock:
            expired = [
                key for key, action in self._pending.items() if action.is_expired(now, ttl_seconds)
            ]
            for key in expired:
                del self._pending[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._pending)


class RedisPendingActionStore(PendingActionStore):
    """Redis-backed store for sharing pending actions between processes.

    Entries carry a Redis TTL a little longer than the confirmation window so
    abandoned conversations do not accumulate; expiry itself is still decided
    by the dispatcher from ``created_at``.

    Calls use the synchronous redis client, so each one blocks the event loop
    for a round trip when the dispatcher runs under asyncio.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        ttl_seconds: int = 300,
        key_prefix: str = "finchat:pending:",
    ) -> None:
        """Initialize the Redis-backed store.

        Args:
            redis_client: Connected Redis client
            ttl_seconds: Confirmation window; keys live for twice as long
            key_prefix: Prefix for Redis keys
        """
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def _make_redis_key(self, key: str) -> str:
        """Create a Redis key for a conversation key."""
        return f"{self.key_prefix}{key}"

    def get(self, key: str) -> PendingAction | None:
        data = self.redis.get(self._make_redis_key(key))
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode()
        try:
            return PendingAction.from_dict(json.loads(data))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.error("Error deserializing pending action: %s", e)
            return None

    def set(self, key: str, action: PendingAction) -> None:
        self.redis.setex(
            self._make_redis_key(key),
            self.ttl_seconds * 2,
            json.dumps(action.to_dict()),
        )
        log_debug(logger, "Stored pending action", kind=action.kind)

    def delete(self, key: str) -> bool:
        return self.redis.delete(self._make_redis_key(key)) > 0


def create_pending_action_store(
    redis_client: redis.Redis | None, ttl_seconds: int = 300
) -> PendingActionStore:
    """Choose the Redis store when a client is available, else the in-memory one."""
    if redis_client is None:
        logger.warning("Redis not available, using in-memory store for pending confirmations")
        return InMemoryPendingActionStore()
    logger.info("Using Redis-backed pending confirmation storage")
    return RedisPendingActionStore(redis_client, ttl_seconds=ttl_seconds)
