"""Messaging client — abstract interface every transport must implement."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


class ConnectionState(enum.Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class DisconnectReason(enum.IntEnum):
    """Status codes carried by a ``closed`` update."""

    LOGGED_OUT = 401
    CONNECTION_LOST = 408
    UNAVAILABLE = 503


@dataclass
class DisconnectInfo:
    status_code: int | None
    message: str = ""

    @property
    def is_logged_out(self) -> bool:
        return self.status_code == DisconnectReason.LOGGED_OUT


@dataclass
class ConnectionUpdate:
    """Lifecycle event published whenever the connection state changes."""

    connection: ConnectionState
    last_disconnect: DisconnectInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"connection": self.connection.value}
        if self.last_disconnect is not None:
            data["lastDisconnect"] = {
                "statusCode": self.last_disconnect.status_code,
                "message": self.last_disconnect.message,
            }
        return data


@dataclass
class CredentialsUpdate:
    """Published when the client rotates its session credentials.

    The payload is opaque; only the client that produced it can read it.
    """

    credentials: bytes


@dataclass
class Button:
    kind: str  # "copy_code" | "url"
    display_text: str
    value: str


@dataclass
class InteractiveMessage:
    """Transport-neutral rich message with action buttons."""

    body: str
    title: str = ""
    subtitle: str = ""
    footer: str = ""
    buttons: list[Button] = field(default_factory=list)


class MessagingError(Exception):
    """Transport or API failure reported by a messaging client."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TerminalDisconnect(MessagingError):
    """The session was logged out and needs re-authentication."""

    def __init__(self, message: str = "Logged out") -> None:
        super().__init__(message, status_code=DisconnectReason.LOGGED_OUT)


class MessagingClient(ABC):
    """Abstract base class for WhatsApp transports.

    A client publishes its own ``ConnectionUpdate`` and
    ``CredentialsUpdate`` events; :meth:`connect` reports its outcome
    through those events rather than by raising.
    """

    user: dict[str, Any] | None = None

    @abstractmethod
    async def connect(self) -> None:
        """Establish the session and publish the resulting lifecycle events."""

    @abstractmethod
    async def send_text(self, recipient: str, text: str) -> str:
        """Send a plain text message and return its message id."""

    @abstractmethod
    def build_interactive_message(
        self, recipient: str, message: InteractiveMessage
    ) -> dict[str, Any]:
        """Render *message* into the transport's wire payload."""

    @abstractmethod
    async def relay_message(self, payload: dict[str, Any]) -> str:
        """Send a payload built by :meth:`build_interactive_message`."""
