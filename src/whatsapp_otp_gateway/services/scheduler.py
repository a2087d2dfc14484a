"""Delayed-task scheduling on the running event loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(
        self, delay: float, callback: Callable[[], Awaitable[None]]
    ) -> Cancellable: ...


class AsyncioScheduler:
    """Runs a coroutine function after *delay* seconds.

    The returned ``asyncio.TimerHandle`` cancels the call if it has not
    fired yet.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def call_later(
        self, delay: float, callback: Callable[[], Awaitable[None]]
    ) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self._spawn, callback)

    def _spawn(self, callback: Callable[[], Awaitable[None]]) -> None:
        task = asyncio.ensure_future(callback())
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Scheduled task failed", exc_info=task.exception())
