"""Periodic background sweep of expired entries.

A :class:`BackgroundCleaner` owns at most one asyncio task that wakes up
every ``interval`` milliseconds and awaits the folder's sweep coroutine.
Folders are often created from synchronous code (application start-up,
module import), before any event loop is running; in that case
:meth:`BackgroundCleaner.start` records the request and the task is
created by :meth:`BackgroundCleaner.resume`, which the folder calls at the
top of every awaited operation. The same mechanism restarts the task when
a previous event loop has finished and taken its task with it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional

logger = logging.getLogger(__name__)


class BackgroundCleaner:
    """Scheduled-task handle for a folder's expiry sweep.

    Args:
        sweep: Coroutine function performing one sweep pass.
        interval: Delay between passes, in milliseconds.
        name: Label used for the task name and log messages.
    """

    def __init__(
        self,
        sweep: Callable[[], Awaitable[object]],
        interval: int,
        name: str = "cleaner",
    ) -> None:
        self._sweep = sweep
        self._interval = interval
        self._name = name
        self._wanted = False
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def interval(self) -> int:
        """Delay between sweeps, in milliseconds."""
        return self._interval

    @property
    def enabled(self) -> bool:
        """Whether cleaning has been requested (and not stopped since)."""
        return self._wanted

    @property
    def running(self) -> bool:
        """Whether a sweep task is currently scheduled."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Request periodic cleaning. No-op if already requested."""
        if self._wanted:
            return
        self._wanted = True
        self._spawn()

    def resume(self) -> None:
        """Create the sweep task if cleaning is wanted but no task is alive."""
        if self._wanted and not self.running:
            self._spawn()

    def stop(self) -> None:
        """Cancel periodic cleaning. No-op if not running."""
        if not self._wanted and self._task is None:
            return
        self._wanted = False
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Stopped cleaner for %s", self._name)

    def _spawn(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet: resume() will create the task later.
            return
        self._task = loop.create_task(self._run(), name=f"foldercache-{self._name}")
        logger.debug("Started cleaner for %s every %d ms", self._name, self._interval)

    async def _run(self) -> None:
        delay = self._interval / 1000
        while True:
            await asyncio.sleep(delay)
            try:
                await self._sweep()
            except Exception:
                logger.exception("Cache sweep failed for %s", self._name)
