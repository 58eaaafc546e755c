"""Tests for periodic maintenance tasks."""

import asyncio

import pytest

from finchat.scheduler import PeriodicTask, Scheduler


@pytest.mark.asyncio
async def test_run_once_sync_and_async() -> None:
    async def job():
        return "async"

    sync_task = PeriodicTask("sync", lambda: 3, interval_seconds=60)
    async_task = PeriodicTask("async", job, interval_seconds=60)

    assert await sync_task.run_once() == 3
    assert await async_task.run_once() == "async"
    assert sync_task.runs == 1


@pytest.mark.asyncio
async def test_loop_runs_until_stopped() -> None:
    calls = []
    task = PeriodicTask("tick", lambda: calls.append(1), interval_seconds=0.01)

    task.start()
    assert task.running
    await asyncio.sleep(0.1)
    await task.stop()

    assert not task.running
    assert len(calls) >= 2
    stopped_at = len(calls)
    await asyncio.sleep(0.05)
    assert len(calls) == stopped_at


@pytest.mark.asyncio
async def test_errors_do_not_stop_the_loop() -> None:
    attempts = []

    def flaky():
        attempts.append(1)
        raise RuntimeError("boom")

    task = PeriodicTask("flaky", flaky, interval_seconds=0.01)
    task.start()
    await asyncio.sleep(0.1)
    await task.stop()

    assert len(attempts) >= 2


@pytest.mark.asyncio
async def test_start_is_idempotent() -> None:
    task = PeriodicTask("tick", lambda: None, interval_seconds=60)
    task.start()
    first = task._task
    task.start()
    assert task._task is first
    await task.stop()


@pytest.mark.asyncio
async def test_stop_without_start() -> None:
    await PeriodicTask("idle", lambda: None, interval_seconds=60).stop()


@pytest.mark.asyncio
async def test_scheduler_group() -> None:
    scheduler = Scheduler()
    a = scheduler.add("a", lambda: None, 60)
    b = scheduler.add("b", lambda: None, 60)

    scheduler.start()
    assert a.running and b.running
    await scheduler.stop()
    assert not a.running and not b.running
