"""FastAPI application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from whatsapp_otp_gateway.api.realtime import router as realtime_router
from whatsapp_otp_gateway.api.routes import router as otp_router
from whatsapp_otp_gateway.config import settings
from whatsapp_otp_gateway.errors import GatewayError
from whatsapp_otp_gateway.messaging.base import ConnectionUpdate, CredentialsUpdate
from whatsapp_otp_gateway.messaging.events import EventChannel, consume
from whatsapp_otp_gateway.otp.store import OtpStore
from whatsapp_otp_gateway.services.broadcaster import StatusBroadcaster
from whatsapp_otp_gateway.services.credential_store import CredentialStore
from whatsapp_otp_gateway.services.gateway import NotificationGateway
from whatsapp_otp_gateway.services.scheduler import AsyncioScheduler
from whatsapp_otp_gateway.services.session_manager import SessionManager

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    logger.info("Starting %s …", settings.app_name)

    events = EventChannel()
    credential_store = CredentialStore(settings.session_dir)
    session_manager = SessionManager(events, credential_store)
    broadcaster = StatusBroadcaster()
    gateway = NotificationGateway(
        session_manager,
        OtpStore(ttl_seconds=settings.otp_ttl_seconds),
        broadcaster,
        AsyncioScheduler(),
    )
    app.state.session_manager = session_manager
    app.state.broadcaster = broadcaster
    app.state.gateway = gateway

    # Subscribe before starting so the first lifecycle events are not missed.
    consumers = [
        asyncio.create_task(
            consume(events.subscribe(ConnectionUpdate), gateway.on_connection_update)
        ),
        asyncio.create_task(
            consume(
                events.subscribe(CredentialsUpdate),
                credential_store.on_credentials_update,
            )
        ),
    ]
    # The listener must not wait on the messaging handshake.
    session_task = asyncio.create_task(session_manager.start())
    session_task.add_done_callback(_log_start_failure)
    yield

    logger.info("Shutting down %s …", settings.app_name)
    gateway.cancel_reconnect()
    for task in (session_task, *consumers):
        task.cancel()
    await asyncio.gather(session_task, *consumers, return_exceptions=True)
    del app.state.session_manager, app.state.broadcaster, app.state.gateway


def _log_start_failure(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("Failed to start WhatsApp session", exc_info=task.exception())


app = FastAPI(
    title=settings.app_name,
    description="Send and verify one-time passwords over WhatsApp",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(otp_router)
app.include_router(realtime_router)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health")
async def health_check(request: Request):
    """Simple liveness probe."""
    session_manager = getattr(request.app.state, "session_manager", None)
    connected = session_manager is not None and session_manager.is_connected
    return {"status": "healthy", "app": settings.app_name, "connected": connected}


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    logger.info("🚀 Server running on http://localhost:%d", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)
