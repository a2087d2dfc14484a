"""Status broadcaster — pushes lifecycle events to WebSocket observers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class StatusBroadcaster:
    """Registry of connected observers.

    Each broadcast is sent as ``{"event": <name>, "data": <payload>}``.
    A new observer first receives the latest frame of each event name,
    so it starts from the current state.  Observers whose socket fails
    are dropped.
    """

    def __init__(self) -> None:
        self._conns: set[WebSocket] = set()
        self._latest: dict[str, Any] = {}
        self._lock = asyncio.Lock()

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        async with self._lock:
            self._conns.add(ws)
            replay = list(self._latest.items())
        logger.info("🌐 New observer connected")
        for event, data in replay:
            await ws.send_json({"event": event, "data": data})

    async def disconnect(self, ws: WebSocket) -> None:
        async with self._lock:
            self._conns.discard(ws)
        logger.info("❌ Observer disconnected")

    async def broadcast(self, event: str, data: Any) -> None:
        async with self._lock:
            self._latest.pop(event, None)
            self._latest[event] = data
            conns = list(self._conns)
        stale = []
        for ws in conns:
            try:
                await ws.send_json({"event": event, "data": data})
            except Exception:
                stale.append(ws)
        if stale:
            async with self._lock:
                for ws in stale:
                    self._conns.discard(ws)
            logger.debug("Dropped %d stale observer(s)", len(stale))

    @property
    def observer_count(self) -> int:
        return len(self._conns)
