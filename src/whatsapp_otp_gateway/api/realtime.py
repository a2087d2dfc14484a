"""Real-time status channel and the status page that listens to it."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse

from whatsapp_otp_gateway.api.dependencies import get_broadcaster
from whatsapp_otp_gateway.services.broadcaster import StatusBroadcaster

router = APIRouter(tags=["realtime"])

_STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


@router.get("/", include_in_schema=False)
async def index() -> FileResponse:
    return FileResponse(_STATIC_DIR / "index.html")


@router.websocket("/ws")
async def status_feed(
    websocket: WebSocket,
    broadcaster: StatusBroadcaster = Depends(get_broadcaster),
) -> None:
    """Push ``connection-update`` and ``status`` events until the observer leaves."""
    await broadcaster.connect(websocket)
    try:
        while True:
            # Observers are not expected to talk; this just waits for the close.
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await broadcaster.disconnect(websocket)
