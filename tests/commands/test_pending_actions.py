"""Tests for pending confirmation storage."""

import logging
import re
from datetime import datetime, timedelta

import pytest
import redis

from finchat.commands.pending_actions import (
    InMemoryPendingActionStore,
    PendingAction,
    RedisPendingActionStore,
    create_pending_action_store,
    generate_confirmation_token,
)

STAGED_AT = datetime(2026, 3, 15, 12, 0, 0)


def make_action(kind: str = "expense", **payload) -> PendingAction:
    payload = payload or {"amount": "25.50", "category": "mercado", "payment_method": "pix"}
    return PendingAction(kind=kind, payload=payload, created_at=STAGED_AT)


@pytest.fixture
def store() -> InMemoryPendingActionStore:
    return InMemoryPendingActionStore()


@pytest.fixture
def redis_client():
    """Create a Redis client for testing."""
    try:
        client = redis.Redis(host="localhost", port=6379, db=15, decode_responses=False)
        client.ping()
        for key in client.scan_iter(match="test_pending:*"):
            client.delete(key)
        yield client
        for key in client.scan_iter(match="test_pending:*"):
            client.delete(key)
    except redis.ConnectionError:
        pytest.skip("Redis not available for testing")


@pytest.fixture
def redis_store(redis_client) -> RedisPendingActionStore:
    return RedisPendingActionStore(redis_client, ttl_seconds=60, key_prefix="test_pending:")


class TestToken:
    """Test confirmation token generation."""

    def test_format(self) -> None:
        token = generate_confirmation_token()
        assert re.fullmatch(r"[A-Z0-9]{6}", token)

    def test_custom_length(self) -> None:
        assert len(generate_confirmation_token(8)) == 8

    def test_default_token_on_action(self) -> None:
        assert re.fullmatch(r"[A-Z0-9]{6}", make_action().token)


class TestExpiry:
    """Test the confirmation window."""

    def test_within_window(self) -> None:
        action = make_action()
        assert not action.is_expired(STAGED_AT + timedelta(seconds=299), 300)

    def test_exact_boundary_is_live(self) -> None:
        action = make_action()
        assert not action.is_expired(STAGED_AT + timedelta(seconds=300), 300)

    def test_past_window(self) -> None:
        action = make_action()
        assert action.is_expired(STAGED_AT + timedelta(seconds=301), 300)


class TestSerialization:
    """Test dict conversion used by the Redis store."""

    def test_round_trip(self) -> None:
        action = make_action("delete", transaction_id=7)
        restored = PendingAction.from_dict(action.to_dict())
        assert restored == action

    def test_created_at_is_iso(self) -> None:
        assert make_action().to_dict()["created_at"] == "2026-03-15T12:00:00"


class TestInMemoryStore:
    """Test the dict-backed store."""

    def test_get_missing(self, store: InMemoryPendingActionStore) -> None:
        assert store.get("nobody") is None

    def test_set_and_get(self, store: InMemoryPendingActionStore) -> None:
        action = make_action()
        store.set("a", action)
        assert store.get("a") is action

    def test_set_replaces(self, store: InMemoryPendingActionStore) -> None:
        store.set("a", make_action("expense"))
        store.set("a", make_action("income", amount="10", category="Renda"))
        assert store.get("a").kind == "income"
        assert len(store) == 1

    def test_delete(self, store: InMemoryPendingActionStore) -> None:
        store.set("a", make_action())
        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.get("a") is None

    def test_keys_are_independent(self, store: InMemoryPendingActionStore) -> None:
        store.set("a", make_action())
        store.set("b", make_action("delete", transaction_id=1))
        store.delete("a")
        assert store.get("b").kind == "delete"

    def test_purge_expired(self, store: InMemoryPendingActionStore) -> None:
        store.set("old", make_action())
        fresh = PendingAction(
            kind="delete",
            payload={"transaction_id": 1},
            created_at=STAGED_AT + timedelta(seconds=200),
        )
        store.set("fresh", fresh)

        removed = store.purge_expired(STAGED_AT + timedelta(seconds=400), 300)

        assert removed == 1
        assert store.get("old") is None
        assert store.get("fresh") is fresh


class TestFactory:
    """Test store selection."""

    def test_without_redis(self) -> None:
        assert isinstance(create_pending_action_store(None), InMemoryPendingActionStore)

    def test_with_redis_client(self) -> None:
        client = redis.Redis(host="localhost", port=6379)
        store = create_pending_action_store(client, ttl_seconds=120)
        assert isinstance(store, RedisPendingActionStore)
        assert store.ttl_seconds == 120


class TestRedisStore:
    """Test the Redis-backed store against a live server."""

    def test_set_and_get(self, redis_store: RedisPendingActionStore) -> None:
        action = make_action()
        redis_store.set("5511999998888", action)

        restored = redis_store.get("5511999998888")

        assert restored == action

    def test_key_ttl(self, redis_store: RedisPendingActionStore, redis_client) -> None:
        redis_store.set("a", make_action())
        ttl = redis_client.ttl("test_pending:a")
        assert 0 < ttl <= 120

    def test_delete(self, redis_store: RedisPendingActionStore) -> None:
        redis_store.set("a", make_action())
        assert redis_store.delete("a") is True
        assert redis_store.delete("a") is False
        assert redis_store.get("a") is None

    def test_corrupt_entry(self, redis_store: RedisPendingActionStore, redis_client) -> None:
        redis_client.set("test_pending:a", "not json")
        assert redis_store.get("a") is None

    def test_set_logs_kind_only(
        self, redis_store: RedisPendingActionStore, caplog
    ) -> None:
        action = make_action()
        caplog.set_level(logging.DEBUG, logger="finchat.commands.pending_actions")

        redis_store.set("a", action)

        [record] = [r for r in caplog.records if r.getMessage().startswith("Stored")]
        assert "kind=expense" in record.getMessage()
        assert action.token not in record.getMessage()
