"""Console client — logs outbound messages instead of sending them."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from whatsapp_otp_gateway.messaging.base import (
    ConnectionState,
    ConnectionUpdate,
    InteractiveMessage,
    MessagingClient,
)
from whatsapp_otp_gateway.messaging.events import EventChannel

logger = logging.getLogger(__name__)


class ConsoleClient(MessagingClient):
    """Development transport: always connects, records every payload in ``sent``."""

    def __init__(self, events: EventChannel, credentials: bytes | None = None) -> None:
        self._events = events
        self.sent: list[dict[str, Any]] = []
        self.user = None

    async def connect(self) -> None:
        self._events.publish(ConnectionUpdate(ConnectionState.CONNECTING))
        self.user = {"id": "console", "name": "Console", "number": ""}
        self._events.publish(ConnectionUpdate(ConnectionState.OPEN))

    async def send_text(self, recipient: str, text: str) -> str:
        return await self.relay_message({"to": recipient, "type": "text", "text": text})

    def build_interactive_message(
        self, recipient: str, message: InteractiveMessage
    ) -> dict[str, Any]:
        return {"to": recipient, "type": "interactive", "interactive": message}

    async def relay_message(self, payload: dict[str, Any]) -> str:
        message_id = uuid.uuid4().hex
        self.sent.append(payload)
        if payload["type"] == "interactive":
            msg: InteractiveMessage = payload["interactive"]
            logger.info("📨 [%s] → %s: %s", msg.title, payload["to"], msg.body)
        else:
            logger.info("📨 → %s: %s", payload["to"], payload["text"])
        return message_id
