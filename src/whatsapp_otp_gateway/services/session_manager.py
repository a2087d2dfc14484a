"""Session manager — owns the current messaging-client session."""

from __future__ import annotations

import logging
from collections.abc import Callable

from whatsapp_otp_gateway.config import settings
from whatsapp_otp_gateway.messaging.base import MessagingClient
from whatsapp_otp_gateway.messaging.cloud_api import CloudApiClient
from whatsapp_otp_gateway.messaging.console import ConsoleClient
from whatsapp_otp_gateway.messaging.events import EventChannel
from whatsapp_otp_gateway.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

ClientFactory = Callable[[EventChannel, bytes | None], MessagingClient]

_BACKENDS: dict[str, ClientFactory] = {
    "cloud": CloudApiClient,
    "console": ConsoleClient,
}


class SessionManager:
    """Holds the single, swappable messaging-client reference.

    Every (re)connect builds a fresh client and replaces the old one
    wholesale.  Dependents must read :attr:`client` at call time instead
    of keeping the instance around.
    """

    def __init__(
        self,
        events: EventChannel,
        credential_store: CredentialStore,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.events = events
        self._credential_store = credential_store
        self._client_factory = client_factory or _BACKENDS[settings.messaging_backend]
        self._client: MessagingClient | None = None

    @property
    def client(self) -> MessagingClient | None:
        """The current client, or ``None`` before the first start."""
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._client is not None and self._client.user is not None

    async def start(self) -> None:
        """Create a new client from stored credentials and connect it."""
        credentials = self._credential_store.load()
        if credentials is not None:
            logger.info("🔒 Session data found in %s", self._credential_store.path)
        else:
            logger.info("⚠️ No session data found, starting from configured credentials")

        client = self._client_factory(self.events, credentials)
        self._client = client
        logger.info("Starting %s session", type(client).__name__)
        await client.connect()
