"""Notification gateway — OTP issuance, verification and message dispatch.

Turns validated requests into outbound WhatsApp messages through the
current messaging client, and turns connection lifecycle events into
status broadcasts and reconnect scheduling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from whatsapp_otp_gateway.config import Settings, settings
from whatsapp_otp_gateway.errors import ClientUnavailable, DeliveryFailed, InvalidInput
from whatsapp_otp_gateway.messaging.base import (
    Button,
    ConnectionState,
    ConnectionUpdate,
    InteractiveMessage,
    MessagingClient,
    MessagingError,
)
from whatsapp_otp_gateway.otp.store import OtpStore, VerifyResult
from whatsapp_otp_gateway.services.broadcaster import StatusBroadcaster
from whatsapp_otp_gateway.services.scheduler import Cancellable, Scheduler
from whatsapp_otp_gateway.services.session_manager import SessionManager

logger = logging.getLogger(__name__)

STATUS_RECONNECTED = "♻️ Connection reestablished."
STATUS_LOGGED_OUT = "🚪 Logged out. Re-authentication required."
STATUS_RECONNECTING = "💔 Connection closed. Reconnecting…"


@dataclass
class OtpDelivery:
    code: str
    status: str = "success"


class NotificationGateway:
    """Facade between the HTTP surface and the messaging session."""

    def __init__(
        self,
        session_manager: SessionManager,
        otp_store: OtpStore,
        broadcaster: StatusBroadcaster,
        scheduler: Scheduler,
        config: Settings | None = None,
    ) -> None:
        self._sessions = session_manager
        self._otp_store = otp_store
        self._broadcaster = broadcaster
        self._scheduler = scheduler
        self._config = config or settings
        self._first_open = True
        self._reconnect_handle: Cancellable | None = None

    # ── Requests ─────────────────────────────────────────

    async def request_otp(self, recipient: str | None) -> OtpDelivery:
        if not recipient:
            raise InvalidInput("Phone number is required!")
        client = self._require_client()

        code = self._otp_store.issue(recipient)
        message = self._otp_message(code)
        try:
            payload = client.build_interactive_message(recipient, message)
            await client.relay_message(payload)
        except MessagingError as exc:
            logger.error("Failed to send OTP to %s: %s", recipient, exc)
            raise DeliveryFailed("Failed to send OTP", details=str(exc)) from exc

        logger.info("✅ OTP sent to %s", recipient)
        return OtpDelivery(code=code)

    def verify_otp(self, recipient: str | None, candidate: str | None) -> VerifyResult:
        if not recipient:
            raise InvalidInput("Phone number is required!")
        if not candidate:
            raise InvalidInput("OTP is required!")

        result = self._otp_store.verify(recipient, candidate)
        if result is VerifyResult.SUCCESS:
            logger.info("✅ OTP verified successfully for %s", recipient)
        else:
            logger.info("❌ OTP verification for %s: %s", recipient, result.value)
        return result

    async def send_message(self, recipient: str | None, text: str | None) -> None:
        if not recipient:
            raise InvalidInput("Phone number is required!")
        if not text:
            raise InvalidInput("Message text is required!")
        client = self._require_client()

        try:
            await client.send_text(recipient, text)
        except MessagingError as exc:
            logger.error("Failed to send message to %s: %s", recipient, exc)
            raise DeliveryFailed("Failed to send message", details=str(exc)) from exc
        logger.info("✅ Message sent to %s", recipient)

    # ── Connection lifecycle ─────────────────────────────

    async def on_connection_update(self, update: ConnectionUpdate) -> None:
        """React to a lifecycle event published by the messaging client."""
        await self._broadcaster.broadcast("connection-update", update.to_dict())

        if update.connection is ConnectionState.CLOSED:
            await self._handle_close(update)
        elif update.connection is ConnectionState.OPEN:
            await self._handle_open()

    def cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    async def _handle_close(self, update: ConnectionUpdate) -> None:
        info = update.last_disconnect
        if info is not None and info.is_logged_out:
            logger.warning("💔 Connection closed: logged out, not reconnecting")
            await self._broadcaster.broadcast("status", STATUS_LOGGED_OUT)
            return

        delay = self._config.reconnect_delay_seconds
        status_code = info.status_code if info is not None else None
        logger.warning("💔 Connection closed (%s). Reconnecting in %.0fs", status_code, delay)
        self.cancel_reconnect()
        self._reconnect_handle = self._scheduler.call_later(delay, self._sessions.start)
        await self._broadcaster.broadcast("status", STATUS_RECONNECTING)

    async def _handle_open(self) -> None:
        if not self._first_open:
            logger.info("♻️ Connection reestablished.")
            await self._broadcaster.broadcast("status", STATUS_RECONNECTED)
            return

        self._first_open = False
        status = f"🌟 {self._config.app_name} connected 🌟"
        logger.info(status)
        await self._broadcaster.broadcast("status", status)
        await self._notify_admin()

    async def _notify_admin(self) -> None:
        number = self._config.admin_notify_number
        client = self._sessions.client
        if not number or client is None:
            return
        try:
            await client.send_text(number, self._config.admin_notify_text)
        except MessagingError as exc:
            logger.error("Failed to send connection notice to %s: %s", number, exc)
            return
        logger.info("✅ Connection notice sent to %s", number)

    # ── Private helpers ──────────────────────────────────

    def _require_client(self) -> MessagingClient:
        client = self._sessions.client
        if client is None or client.user is None:
            raise ClientUnavailable("WhatsApp bot is not connected!")
        return client

    def _otp_message(self, code: str) -> InteractiveMessage:
        site_url = self._config.site_url
        return InteractiveMessage(
            title="OTP Verification",
            subtitle=self._config.app_name,
            body=(
                f"Your OTP is *{code}*. Please use it to verify your identity.\n\n"
                f"Visit our site: {site_url}"
            ),
            footer=self._config.otp_footer_text,
            buttons=[
                Button(kind="copy_code", display_text="Copy OTP", value=code),
                Button(kind="url", display_text="Visit Site", value=site_url),
            ],
        )
