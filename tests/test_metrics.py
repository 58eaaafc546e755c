"""Tests for the metrics collector."""

from finchat.metrics import MetricsCollector, get_metrics_collector, is_metrics_enabled


def test_snapshot() -> None:
    metrics = MetricsCollector()
    for latency in (1.0, 2.0, 3.0, 4.0):
        metrics.record_command("record_expense", latency)
    metrics.record_command("confirm", 10.0)
    metrics.record_confirmation("ok")
    metrics.record_confirmation("expired")
    metrics.record_confirmation("ok")

    snapshot = metrics.get_snapshot()

    assert snapshot["command_counts"] == {"record_expense": 4, "confirm": 1}
    assert snapshot["confirm_outcomes"] == {"ok": 2, "expired": 1}
    assert snapshot["message_latency_ms"] == {"p50": 3.0, "p95": 10.0, "count": 5}


def test_empty_snapshot() -> None:
    snapshot = MetricsCollector().get_snapshot()
    assert snapshot["message_latency_ms"] == {"p50": None, "p95": None, "count": 0}


def test_reset() -> None:
    metrics = MetricsCollector()
    metrics.record_command("saldo", 1.0)
    metrics.reset()
    assert metrics.get_snapshot()["command_counts"] == {}


def test_global_collector() -> None:
    assert get_metrics_collector() is get_metrics_collector()


def test_enabled_flag(monkeypatch) -> None:
    monkeypatch.delenv("FINCHAT_ENABLE_METRICS", raising=False)
    assert is_metrics_enabled() is False
    monkeypatch.setenv("FINCHAT_ENABLE_METRICS", "true")
    assert is_metrics_enabled() is True
