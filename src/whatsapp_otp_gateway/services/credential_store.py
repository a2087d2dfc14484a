"""Credential store — persists the messaging client's opaque session blob."""

from __future__ import annotations

import logging
from pathlib import Path

from whatsapp_otp_gateway.messaging.base import CredentialsUpdate

logger = logging.getLogger(__name__)

CREDS_FILENAME = "creds.json"


class CredentialStore:
    """Reads and writes ``<session_dir>/creds.json``.

    The bytes are written as-is; their format belongs to the client.
    """

    def __init__(self, session_dir: str | Path) -> None:
        self._dir = Path(session_dir)
        self.path = self._dir / CREDS_FILENAME

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> bytes | None:
        if not self.exists():
            return None
        return self.path.read_bytes()

    def save(self, credentials: bytes) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_bytes(credentials)
        tmp.replace(self.path)
        logger.info("Session credentials saved to %s", self.path)

    async def on_credentials_update(self, update: CredentialsUpdate) -> None:
        """Event-channel subscriber for ``CredentialsUpdate``."""
        self.save(update.credentials)
