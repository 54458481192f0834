"""Detached (fire-and-forget) tasks for cache writes.

The response path submits a write and moves on. Every failure is reported
through this module's logger and counted, never raised to the submitter.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class DetachedTasks:
    """Tracks in-flight detached tasks so they can be drained on shutdown.

    Example:
        ```python
        tasks = DetachedTasks()
        tasks.submit(recipe_cache.store(query, result), "recipe cache write")
        ...
        await tasks.drain()
        ```
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self._failures = 0
        self._completed = 0

    def submit(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task:
        """Schedule a coroutine without waiting for it.

        Must be called from inside a running event loop.

        Args:
            coro: The coroutine to run
            description: Short label used when reporting failures

        Returns:
            The scheduled task
        """
        task = asyncio.get_running_loop().create_task(self._run(coro, description))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, coro: Coroutine[Any, Any, Any], description: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            logger.warning("Detached task cancelled: %s", description)
            raise
        except Exception:
            self._failures += 1
            logger.exception("Detached task failed: %s", description)
        else:
            self._completed += 1

    async def drain(self) -> None:
        """Wait for every task submitted so far (and any they submit)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending(self) -> int:
        """Number of tasks still running."""
        return len(self._tasks)

    @property
    def failures(self) -> int:
        """Number of tasks that raised."""
        return self._failures

    @property
    def completed(self) -> int:
        """Number of tasks that finished successfully."""
        return self._completed
