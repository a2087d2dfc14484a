"""Shared fakes for gateway and API tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from whatsapp_otp_gateway.config import Settings
from whatsapp_otp_gateway.messaging.base import (
    InteractiveMessage,
    MessagingClient,
    MessagingError,
)
from whatsapp_otp_gateway.messaging.events import EventChannel
from whatsapp_otp_gateway.otp.store import OtpStore
from whatsapp_otp_gateway.services.broadcaster import StatusBroadcaster
from whatsapp_otp_gateway.services.credential_store import CredentialStore
from whatsapp_otp_gateway.services.gateway import NotificationGateway
from whatsapp_otp_gateway.services.session_manager import SessionManager


class FakeClient(MessagingClient):
    """In-memory client; set ``fail_with`` to make every send raise."""

    def __init__(self, events: EventChannel, credentials: bytes | None = None) -> None:
        self.credentials = credentials
        self.user = None
        self.sent: list[dict[str, Any]] = []
        self.fail_with: MessagingError | None = None

    async def connect(self) -> None:
        self.user = {"id": "fake"}

    async def send_text(self, recipient: str, text: str) -> str:
        return await self.relay_message({"to": recipient, "text": text})

    def build_interactive_message(
        self, recipient: str, message: InteractiveMessage
    ) -> dict[str, Any]:
        return {"to": recipient, "interactive": message}

    async def relay_message(self, payload: dict[str, Any]) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(payload)
        return f"wamid.{len(self.sent)}"


class FakeScheduler:
    """Records scheduled calls instead of running them."""

    def __init__(self) -> None:
        self.calls: list[tuple[float, Any]] = []
        self.handles: list[MagicMock] = []

    def call_later(self, delay, callback):
        handle = MagicMock()
        self.calls.append((delay, callback))
        self.handles.append(handle)
        return handle


@pytest.fixture
def config() -> Settings:
    return Settings(
        admin_notify_number="94700000001",
        admin_notify_text="Gateway up",
        site_url="https://otp.example.com/",
        reconnect_delay_seconds=5,
        app_name="Test Gateway",
    )


@pytest.fixture
def session_manager(tmp_path) -> SessionManager:
    return SessionManager(
        EventChannel(), CredentialStore(tmp_path / "session"), client_factory=FakeClient
    )


@pytest.fixture
def broadcaster() -> StatusBroadcaster:
    """Broadcaster whose sends are recorded, never delivered."""
    b = StatusBroadcaster()
    b.broadcast = AsyncMock()
    return b


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def otp_store() -> OtpStore:
    return OtpStore()


@pytest.fixture
def gateway(session_manager, otp_store, broadcaster, scheduler, config) -> NotificationGateway:
    return NotificationGateway(session_manager, otp_store, broadcaster, scheduler, config)
