"""Lifecycle event channel — each subscriber drains its own queue."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class EventChannel:
    """Fan-out channel for typed lifecycle events.

    Subscribers receive only the event types they asked for, in publish
    order, independently of one another.
    """

    def __init__(self) -> None:
        self._subscribers: list[tuple[tuple[type, ...], asyncio.Queue]] = []

    def subscribe(self, *event_types: type) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append((event_types, queue))
        return queue

    def publish(self, event: Any) -> None:
        for event_types, queue in self._subscribers:
            if not event_types or isinstance(event, event_types):
                queue.put_nowait(event)


async def consume(
    queue: asyncio.Queue, handler: Callable[[Any], Awaitable[None]]
) -> None:
    """Feed every event from *queue* to *handler* until cancelled."""
    while True:
        event = await queue.get()
        try:
            await handler(event)
        except Exception:
            logger.exception("Event handler %r failed on %r", handler, event)
        finally:
            queue.task_done()
