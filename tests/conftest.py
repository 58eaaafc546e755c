"""pytest configuration for finchat tests."""

import os
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add src directory to path so tests can import finchat
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# In-memory database and no Redis for all tests to ensure isolation
os.environ["FINCHAT_DB_PATH"] = ":memory:"
os.environ["REDIS_ENABLED"] = "false"

from finchat.ledger import DuckDBLedger, init_db  # noqa: E402


class FakeClock:
    """Controllable replacement for datetime.now."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at 2026-03-15 12:00 local time."""
    return FakeClock(datetime(2026, 3, 15, 12, 0, 0))


@pytest.fixture
def ledger() -> DuckDBLedger:
    """Ledger on a fresh in-memory database."""
    return DuckDBLedger(init_db(":memory:"))


@pytest.fixture
def sender() -> str:
    return "5511999998888"
