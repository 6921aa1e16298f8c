"""Single-shot debounce timer for the asyncio event loop."""

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Run an async callback once activity has been quiet for *delay* seconds.

    Every :meth:`schedule` call replaces the pending timer, so a burst of
    calls results in a single callback run.  :meth:`cancel` only drops the
    pending timer; a callback that has already started keeps running and can
    be awaited with :meth:`wait_idle`.
    """

    def __init__(self, delay: float, callback: Callable[[], Awaitable[Any]]):
        self.delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a timer is armed and has not fired yet."""
        return self._handle is not None

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def schedule(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Drop the pending timer; returns whether one was armed."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    async def wait_idle(self) -> None:
        """Wait for every callback run that has already started."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _fire(self) -> None:
        self._handle = None
        task = asyncio.ensure_future(self._callback())
        self._tasks.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Debounced callback failed: {exc}")
