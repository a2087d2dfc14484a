"""Request-scoped accessors for the shared service instances."""

from fastapi import Request, WebSocket

from whatsapp_otp_gateway.services.broadcaster import StatusBroadcaster
from whatsapp_otp_gateway.services.gateway import NotificationGateway


def get_gateway(request: Request) -> NotificationGateway:
    return request.app.state.gateway


def get_broadcaster(websocket: WebSocket) -> StatusBroadcaster:
    return websocket.app.state.broadcaster
