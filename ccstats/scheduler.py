"""Repeating asyncio task — the periodic trigger behind both pollers.

Runs an async callback immediately, then every ``interval`` seconds until
stopped. A failing callback is logged and the loop keeps going; there is no
backoff, the next tick is simply the next attempt.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class RepeatingTask:
    """Cancellable loop bound to the running event loop."""

    def __init__(
        self,
        name: str,
        callback: Callable[[], Awaitable[object]],
        interval: float,
        run_immediately: bool = True,
    ) -> None:
        self.name = name
        self.callback = callback
        self.interval = interval
        self.run_immediately = run_immediately
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Schedule the loop on the current event loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info("%s started (interval=%ss)", self.name, self.interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("%s stopped", self.name)

    async def _tick(self) -> None:
        try:
            await self.callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("%s tick failed", self.name)

    async def _loop(self) -> None:
        if self.run_immediately:
            await self._tick()
        while self._running:
            await asyncio.sleep(self.interval)
            if not self._running:
                break
            await self._tick()
