import asyncio
import logging
from typing import Awaitable, Set

logger = logging.getLogger(__name__)

class BackgroundTasks:
    """
    Best-effort async work that must never affect the caller.

    ``dispatch`` schedules a coroutine and returns immediately. Failures are
    logged, never raised. A strong reference is held until the task finishes
    so it is not garbage collected mid-flight.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def dispatch(self, coro: Awaitable, name: str = None) -> asyncio.Task:
        task = asyncio.create_task(self._run(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, coro: Awaitable, name: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            logger.warning("Background task %s cancelled", name or "<unnamed>")
            raise
        except Exception:
            logger.exception("Background task %s failed", name or "<unnamed>")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: float = 10.0) -> None:
        """Wait for in-flight tasks (used on shutdown and in tests)"""
        if not self._tasks:
            return
        done, not_done = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning("Cancelled %d background tasks still running at shutdown", len(not_done))
