"""Coalescing of bursty recomputation before a derived broadcast."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

# Default window; 150-500 ms bounds message volume without visible lag
DEFAULT_DELAY = 0.5


class Debouncer:
    """Runs `callback` once, `delay` seconds after the last trigger.

    The callback may be a plain function or a coroutine function. Only the
    arguments of the latest trigger are used.
    """

    def __init__(
        self,
        callback: Callable[..., Any] | Callable[..., Awaitable[Any]],
        delay: float = DEFAULT_DELAY,
    ):
        self._callback = callback
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._pending: tuple[tuple, dict] | None = None
        self._tasks: set[asyncio.Task] = set()
        self.fired = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        """Restart the timer with new arguments. Needs a running loop."""
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._pending = (args, kwargs)
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        """Drop pending work without running it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None

    async def flush(self) -> None:
        """Run pending work now and wait for it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._pending is None:
            return
        args, kwargs = self._pending
        self._pending = None
        self.fired += 1
        result = self._callback(*args, **kwargs)
        if inspect.isawaitable(result):
            await result

    async def wait(self) -> None:
        """Wait for callbacks started by the timer to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _fire(self) -> None:
        self._handle = None
        if self._pending is None:
            return
        args, kwargs = self._pending
        self._pending = None
        self.fired += 1
        result = self._callback(*args, **kwargs)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._done)

    def _done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Debounced callback failed: {task.exception()}")
