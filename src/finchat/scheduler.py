"""Periodic maintenance jobs owned by the application lifecycle."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run a callable every ``interval_seconds`` on the running event loop.

    The first run happens one interval after ``start()``. Errors raised by an
    iteration are logged and the loop keeps going; ``stop()`` cancels it.
    """

    def __init__(
        self,
        name: str,
        func: Callable[[], Any | Awaitable[Any]],
        interval_seconds: float,
    ) -> None:
        self.name = name
        self.func = func
        self.interval_seconds = interval_seconds
        self.runs = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> Any:
        """Run the job a single time."""
        result = self.func()
        if inspect.isawaitable(result):
            result = await result
        self.runs += 1
        return result

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Error in scheduled task %s: %s", self.name, e)

    def start(self) -> None:
        """Start the loop; must be called with an event loop running."""
        if self.running:
            return
        logger.info("Starting scheduled task %s (interval: %ss)", self.name, self.interval_seconds)
        self._task = asyncio.get_running_loop().create_task(self._loop(), name=self.name)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Stopped scheduled task %s", self.name)


class Scheduler:
    """A group of periodic tasks started and stopped together."""

    def __init__(self) -> None:
        self.tasks: list[PeriodicTask] = []

    def add(
        self, name: str, func: Callable[[], Any | Awaitable[Any]], interval_seconds: float
    ) -> PeriodicTask:
        task = PeriodicTask(name, func, interval_seconds)
        self.tasks.append(task)
        return task

    def start(self) -> None:
        for task in self.tasks:
            task.start()

    async def stop(self) -> None:
        for task in self.tasks:
            await task.stop()
