"""Tests for the NotificationGateway — requests and connection lifecycle."""

from __future__ import annotations

import pytest

from whatsapp_otp_gateway.errors import ClientUnavailable, DeliveryFailed, InvalidInput
from whatsapp_otp_gateway.messaging.base import (
    ConnectionState,
    ConnectionUpdate,
    DisconnectInfo,
    DisconnectReason,
    MessagingError,
)
from whatsapp_otp_gateway.otp.store import VerifyResult
from whatsapp_otp_gateway.services.gateway import (
    STATUS_LOGGED_OUT,
    STATUS_RECONNECTED,
)

NUMBER = "94750000000"


def _closed(status_code: int) -> ConnectionUpdate:
    return ConnectionUpdate(ConnectionState.CLOSED, DisconnectInfo(status_code, "bye"))


def _status_messages(broadcaster) -> list[str]:
    return [c.args[1] for c in broadcaster.broadcast.await_args_list if c.args[0] == "status"]


# ──────────────────────────────────────────────────────────
# OTP requests
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_request_otp_requires_number(gateway):
    with pytest.raises(InvalidInput):
        await gateway.request_otp("")


@pytest.mark.asyncio
async def test_request_otp_without_session(gateway, otp_store):
    with pytest.raises(ClientUnavailable):
        await gateway.request_otp(NUMBER)
    assert len(otp_store) == 0


@pytest.mark.asyncio
async def test_request_otp_sends_interactive_message(gateway, session_manager, otp_store):
    await session_manager.start()

    delivery = await gateway.request_otp(NUMBER)

    assert delivery.status == "success"
    assert len(delivery.code) == 6 and delivery.code.isdigit()
    payload = session_manager.client.sent[0]
    message = payload["interactive"]
    assert payload["to"] == NUMBER
    assert delivery.code in message.body
    assert [b.kind for b in message.buttons] == ["copy_code", "url"]
    assert message.buttons[0].value == delivery.code
    assert message.buttons[1].value == "https://otp.example.com/"
    assert otp_store.verify(NUMBER, delivery.code) is VerifyResult.SUCCESS


@pytest.mark.asyncio
async def test_request_otp_dispatch_failure_keeps_code(gateway, session_manager, otp_store):
    await session_manager.start()
    session_manager.client.fail_with = MessagingError("rate limited", status_code=429)

    with pytest.raises(DeliveryFailed) as exc_info:
        await gateway.request_otp(NUMBER)

    assert exc_info.value.details == "rate limited"
    assert len(otp_store) == 1


@pytest.mark.asyncio
async def test_requests_use_current_client_after_reconnect(gateway, session_manager):
    await session_manager.start()
    old_client = session_manager.client
    await session_manager.start()

    await gateway.send_message(NUMBER, "hello")

    assert old_client.sent == []
    assert session_manager.client.sent == [{"to": NUMBER, "text": "hello"}]


# ──────────────────────────────────────────────────────────
# Verification
# ──────────────────────────────────────────────────────────
def test_verify_otp_requires_both_fields(gateway):
    with pytest.raises(InvalidInput, match="Phone number"):
        gateway.verify_otp(None, "123456")
    with pytest.raises(InvalidInput, match="OTP"):
        gateway.verify_otp(NUMBER, "")


def test_verify_otp_delegates_to_store(gateway, otp_store):
    assert gateway.verify_otp(NUMBER, "123456") is VerifyResult.NOT_FOUND
    code = otp_store.issue(NUMBER)
    assert gateway.verify_otp(NUMBER, code) is VerifyResult.SUCCESS


# ──────────────────────────────────────────────────────────
# Plain messages
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_send_message_validation(gateway):
    with pytest.raises(InvalidInput, match="Message text"):
        await gateway.send_message(NUMBER, None)
    with pytest.raises(ClientUnavailable):
        await gateway.send_message(NUMBER, "hi")


@pytest.mark.asyncio
async def test_send_message_failure(gateway, session_manager):
    await session_manager.start()
    session_manager.client.fail_with = MessagingError("boom")

    with pytest.raises(DeliveryFailed) as exc_info:
        await gateway.send_message(NUMBER, "hi")
    assert exc_info.value.to_dict() == {"error": "Failed to send message", "details": "boom"}


# ──────────────────────────────────────────────────────────
# Connection lifecycle
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_logged_out_does_not_reconnect(gateway, scheduler, broadcaster):
    update = _closed(DisconnectReason.LOGGED_OUT)

    await gateway.on_connection_update(update)

    assert scheduler.calls == []
    first = broadcaster.broadcast.await_args_list[0]
    assert first.args == ("connection-update", update.to_dict())
    assert _status_messages(broadcaster) == [STATUS_LOGGED_OUT]


@pytest.mark.asyncio
async def test_transient_close_schedules_one_reconnect(gateway, scheduler, session_manager):
    await gateway.on_connection_update(_closed(DisconnectReason.CONNECTION_LOST))

    assert len(scheduler.calls) == 1
    delay, callback = scheduler.calls[0]
    assert delay == 5
    assert callback == session_manager.start


@pytest.mark.asyncio
async def test_cancel_reconnect(gateway, scheduler):
    await gateway.on_connection_update(_closed(500))
    gateway.cancel_reconnect()

    scheduler.handles[0].cancel.assert_called_once()


@pytest.mark.asyncio
async def test_first_open_notifies_admin_once(gateway, session_manager, broadcaster):
    await session_manager.start()
    open_update = ConnectionUpdate(ConnectionState.OPEN)

    await gateway.on_connection_update(open_update)
    await gateway.on_connection_update(open_update)

    assert session_manager.client.sent == [{"to": "94700000001", "text": "Gateway up"}]
    assert _status_messages(broadcaster) == [
        "🌟 Test Gateway connected 🌟",
        STATUS_RECONNECTED,
    ]


@pytest.mark.asyncio
async def test_admin_notice_failure_is_not_raised(gateway, session_manager, broadcaster):
    await session_manager.start()
    session_manager.client.fail_with = MessagingError("offline")

    await gateway.on_connection_update(ConnectionUpdate(ConnectionState.OPEN))

    assert _status_messages(broadcaster) == ["🌟 Test Gateway connected 🌟"]


@pytest.mark.asyncio
async def test_admin_notice_disabled_without_number(
    session_manager, otp_store, broadcaster, scheduler, config
):
    from whatsapp_otp_gateway.services.gateway import NotificationGateway

    config.admin_notify_number = ""
    gateway = NotificationGateway(session_manager, otp_store, broadcaster, scheduler, config)
    await session_manager.start()

    await gateway.on_connection_update(ConnectionUpdate(ConnectionState.OPEN))

    assert session_manager.client.sent == []


@pytest.mark.asyncio
async def test_connecting_update_is_only_broadcast(gateway, scheduler, broadcaster):
    await gateway.on_connection_update(ConnectionUpdate(ConnectionState.CONNECTING))

    assert scheduler.calls == []
    broadcaster.broadcast.assert_awaited_once_with(
        "connection-update", {"connection": "connecting"}
    )


@pytest.mark.asyncio
async def test_second_close_replaces_pending_reconnect(gateway, scheduler):
    await gateway.on_connection_update(_closed(500))
    await gateway.on_connection_update(_closed(DisconnectReason.CONNECTION_LOST))

    first, second = scheduler.handles
    first.cancel.assert_called_once()
    second.cancel.assert_not_called()

    gateway.cancel_reconnect()
    second.cancel.assert_called_once()
