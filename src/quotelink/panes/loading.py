"""Latest-request-wins gate for asynchronous content loads."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LatestRequestGate(Generic[T]):
    """Lets only the newest load for a logical resource apply.

    A new `run` cancels the in-flight one. A response whose context no
    longer matches the current context (navigation moved on) is discarded
    and `run` returns None.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._context: Hashable | None = None
        self._task: asyncio.Future | None = None
        self.discarded = 0

    @property
    def context(self) -> Hashable | None:
        return self._context

    def navigate(self, context: Hashable) -> None:
        """Record that the current context changed without starting a load."""
        self._context = context

    async def run(
        self, context: Hashable, loader: Callable[[], Awaitable[T]]
    ) -> T | None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug(f"{self.name}: superseded in-flight load")

        self._context = context
        task: asyncio.Future[Any] = asyncio.ensure_future(loader())
        self._task = task

        try:
            result = await task
        except asyncio.CancelledError:
            if self._task is not task:
                self.discarded += 1
                return None
            raise

        if self._task is not task or self._context != context:
            self.discarded += 1
            logger.debug(f"{self.name}: discarded stale response for {context!r}")
            return None
        return result
