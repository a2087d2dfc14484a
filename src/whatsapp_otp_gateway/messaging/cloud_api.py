"""WhatsApp Cloud API client — async HTTP transport over the Graph API.

The "session" here is an access token bound to a business phone number.
Connecting fetches the phone-number profile; a 401 from the Graph API
means the token was revoked or expired and is treated as a logout.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from whatsapp_otp_gateway.config import Settings, settings
from whatsapp_otp_gateway.messaging.base import (
    ConnectionState,
    ConnectionUpdate,
    CredentialsUpdate,
    DisconnectInfo,
    DisconnectReason,
    InteractiveMessage,
    MessagingClient,
    MessagingError,
    TerminalDisconnect,
)
from whatsapp_otp_gateway.messaging.events import EventChannel

logger = logging.getLogger(__name__)


class CloudApiClient(MessagingClient):
    """Async HTTP wrapper around the WhatsApp Cloud API messages endpoint."""

    def __init__(
        self,
        events: EventChannel,
        credentials: bytes | None = None,
        *,
        config: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        cfg = config or settings
        self._events = events
        self._base_url = f"{cfg.graph_api_base_url.rstrip('/')}/{cfg.graph_api_version}"
        self._phone_number_id = cfg.whatsapp_phone_number_id
        self._app_id = cfg.whatsapp_app_id
        self._app_secret = cfg.whatsapp_app_secret
        self._timeout = cfg.graph_api_timeout
        self._transport = transport
        self._creds = self._parse_credentials(credentials) or {
            "access_token": cfg.whatsapp_api_token,
            "long_lived": False,
        }
        self.user = None

    # ── Lifecycle ────────────────────────────────────────

    async def connect(self) -> None:
        self._events.publish(ConnectionUpdate(ConnectionState.CONNECTING))

        if self._app_id and self._app_secret and not self._creds.get("long_lived"):
            try:
                await self._exchange_token()
            except MessagingError as exc:
                logger.warning("Token exchange failed, keeping current token: %s", exc)

        try:
            data = await self._request(
                "GET",
                f"/{self._phone_number_id}",
                params={"fields": "display_phone_number,verified_name"},
            )
        except MessagingError as exc:
            self.user = None
            status = exc.status_code or DisconnectReason.CONNECTION_LOST
            logger.warning("Cloud API connection failed (%s): %s", status, exc)
            self._events.publish(
                ConnectionUpdate(ConnectionState.CLOSED, DisconnectInfo(status, str(exc)))
            )
            return

        self.user = {
            "id": data.get("id", self._phone_number_id),
            "name": data.get("verified_name", ""),
            "number": data.get("display_phone_number", ""),
        }
        logger.info("Connected as %s (%s)", self.user["name"], self.user["number"])
        self._events.publish(ConnectionUpdate(ConnectionState.OPEN))

    # ── Messages ─────────────────────────────────────────

    async def send_text(self, recipient: str, text: str) -> str:
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": recipient,
            "type": "text",
            "text": {"body": text},
        }
        return await self.relay_message(payload)

    def build_interactive_message(
        self, recipient: str, message: InteractiveMessage
    ) -> dict[str, Any]:
        """Render *message* as a Cloud API ``cta_url`` interactive payload.

        Free-form interactive messages carry a single URL button, so
        copy-code buttons are rendered as a monospace block in the body.
        Without a URL button the message degrades to plain text.
        """
        body = message.body
        for button in message.buttons:
            if button.kind == "copy_code":
                body += f"\n\n{button.display_text}: ```{button.value}```"

        payload: dict[str, Any] = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": recipient,
        }
        url_buttons = [b for b in message.buttons if b.kind == "url"]
        if not url_buttons:
            payload["type"] = "text"
            payload["text"] = {"body": body}
            return payload

        interactive: dict[str, Any] = {
            "type": "cta_url",
            "body": {"text": body},
            "action": {
                "name": "cta_url",
                "parameters": {
                    "display_text": url_buttons[0].display_text,
                    "url": url_buttons[0].value,
                },
            },
        }
        if message.title:
            interactive["header"] = {"type": "text", "text": message.title}
        if message.footer:
            interactive["footer"] = {"text": message.footer}

        payload["type"] = "interactive"
        payload["interactive"] = interactive
        return payload

    async def relay_message(self, payload: dict[str, Any]) -> str:
        try:
            data = await self._request(
                "POST", f"/{self._phone_number_id}/messages", json=payload
            )
        except TerminalDisconnect as exc:
            self.user = None
            self._events.publish(
                ConnectionUpdate(
                    ConnectionState.CLOSED,
                    DisconnectInfo(DisconnectReason.LOGGED_OUT, str(exc)),
                )
            )
            raise
        messages = data.get("messages") or [{}]
        return messages[0].get("id", "")

    # ── Private helpers ──────────────────────────────────

    async def _exchange_token(self) -> None:
        """Swap the configured token for a long-lived one and publish it."""
        data = await self._request(
            "GET",
            "/oauth/access_token",
            params={
                "grant_type": "fb_exchange_token",
                "client_id": self._app_id,
                "client_secret": self._app_secret,
                "fb_exchange_token": self._creds["access_token"],
            },
        )
        self._creds = {
            "access_token": data["access_token"],
            "long_lived": True,
            "expires_in": data.get("expires_in"),
        }
        logger.info("Exchanged access token for a long-lived token")
        self._events.publish(
            CredentialsUpdate(json.dumps(self._creds).encode("utf-8"))
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self._creds['access_token']}"}
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self._timeout
            ) as client:
                resp = await client.request(
                    method, f"{self._base_url}{path}", headers=headers, **kwargs
                )
        except httpx.HTTPError as exc:
            raise MessagingError(
                f"Request error: {exc}", status_code=DisconnectReason.CONNECTION_LOST
            ) from exc

        if resp.status_code == 401:
            raise TerminalDisconnect(self._error_message(resp))
        if resp.status_code >= 400:
            raise MessagingError(self._error_message(resp), status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as exc:
            raise MessagingError(
                f"Unreadable response: {resp.status_code} {resp.text[:200]}",
                status_code=resp.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise MessagingError(
                f"Unexpected response body: {data!r}", status_code=resp.status_code
            )
        return data

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            error = resp.json().get("error", {})
        except ValueError:
            return f"{resp.status_code} {resp.text}"
        return error.get("message") or f"{resp.status_code} {resp.text}"

    @staticmethod
    def _parse_credentials(credentials: bytes | None) -> dict[str, Any] | None:
        if not credentials:
            return None
        try:
            creds = json.loads(credentials)
        except ValueError:
            logger.warning("Ignoring unreadable stored credentials")
            return None
        if not isinstance(creds, dict) or not creds.get("access_token"):
            return None
        return creds
