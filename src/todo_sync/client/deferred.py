# src/todo_sync/client/deferred.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class DeferredCommit:
    """
    Single-shot commit scheduled on the running loop after `delay` seconds.

    cancel() and firing are mutually exclusive: whichever happens first flips
    `settled`, and the other becomes a no-op. A cancelled commit can never run
    its callback, and a fired one can no longer be cancelled.
    """

    def __init__(self, key: str, delay: float, callback: Callable[[], Awaitable[None]]) -> None:
        self.key = key
        self._callback = callback
        self._settled = False
        self._cancelled = False
        self._task: asyncio.Future[None] | None = None
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(max(0.0, delay), self._fire)

    @property
    def settled(self) -> bool:
        return self._settled

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._settled and not self._cancelled

    def cancel(self) -> bool:
        """Cancel before firing. Returns False if already fired or cancelled."""
        if self._settled:
            return False
        self._settled = True
        self._cancelled = True
        self._handle.cancel()
        logger.debug("Deferred commit cancelled key=%s", self.key)
        return True

    def fire_now(self) -> bool:
        """Fire immediately instead of waiting for the timer."""
        if self._settled:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def _fire(self) -> None:
        if self._settled:
            return
        self._settled = True
        logger.debug("Deferred commit firing key=%s", self.key)
        self._task = asyncio.ensure_future(self._callback())

    async def wait(self) -> None:
        """Wait for the callback to finish if it fired; returns at once otherwise."""
        if self._task is not None:
            await asyncio.shield(self._task)
