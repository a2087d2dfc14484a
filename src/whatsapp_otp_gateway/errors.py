"""Gateway error taxonomy — every kind is rendered as a JSON error at the HTTP boundary."""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for request failures surfaced to HTTP callers."""

    status_code = 500

    def __init__(self, error: str, details: str | None = None) -> None:
        super().__init__(error)
        self.error = error
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidInput(GatewayError):
    """A required request field is missing or empty."""

    status_code = 400


class ClientUnavailable(GatewayError):
    """No authenticated messaging session is available."""

    status_code = 500


class DeliveryFailed(GatewayError):
    """The messaging client rejected or failed to send a message."""

    status_code = 500
