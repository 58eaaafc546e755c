"""In-process counters for the chat command flow.

Each worker process keeps its own numbers; there is no aggregation.
"""

import os
import threading
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Any

# Latency samples kept for percentiles
MAX_LATENCY_SAMPLES = 1000


def _percentile(ordered: list[float], fraction: float) -> float | None:
    if not ordered:
        return None
    return ordered[min(int(len(ordered) * fraction), len(ordered) - 1)]


@dataclass
class MetricsCollector:
    """Thread-safe command and confirmation counters."""

    command_counts: Counter = field(default_factory=Counter)
    confirm_outcomes: Counter = field(default_factory=Counter)
    message_latencies: deque = field(default_factory=lambda: deque(maxlen=MAX_LATENCY_SAMPLES))
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def record_command(self, kind: str, latency_ms: float) -> None:
        """Count a processed message by the command kind it parsed to."""
        with self._lock:
            self.command_counts[kind] += 1
            self.message_latencies.append(latency_ms)

    def record_confirmation(self, outcome: str) -> None:
        """Count a confirm outcome: ok, expired, none_pending, invalid_token or error."""
        with self._lock:
            self.confirm_outcomes[outcome] += 1

    def get_snapshot(self) -> dict[str, Any]:
        with self._lock:
            ordered = sorted(self.message_latencies)
            return {
                "command_counts": dict(self.command_counts),
                "confirm_outcomes": dict(self.confirm_outcomes),
                "message_latency_ms": {
                    "p50": _percentile(ordered, 0.5),
                    "p95": _percentile(ordered, 0.95),
                    "count": len(ordered),
                },
            }

    def reset(self) -> None:
        with self._lock:
            self.command_counts.clear()
            self.confirm_outcomes.clear()
            self.message_latencies.clear()


_collector: MetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector() -> MetricsCollector:
    """Process-wide collector, created on first use."""
    global _collector
    with _collector_lock:
        if _collector is None:
            _collector = MetricsCollector()
        return _collector


def is_metrics_enabled() -> bool:
    """FINCHAT_ENABLE_METRICS accepts true/1/yes."""
    return os.getenv("FINCHAT_ENABLE_METRICS", "false").lower() in ("true", "1", "yes")
