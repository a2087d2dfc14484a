"""Tests for the AsyncioScheduler."""

import asyncio

import pytest

from whatsapp_otp_gateway.services.scheduler import AsyncioScheduler


@pytest.mark.asyncio
async def test_callback_runs_after_delay():
    fired = asyncio.Event()

    async def callback():
        fired.set()

    AsyncioScheduler().call_later(0.01, callback)

    await asyncio.wait_for(fired.wait(), timeout=1)


@pytest.mark.asyncio
async def test_cancelled_callback_never_runs():
    calls = []

    async def callback():
        calls.append(1)

    handle = AsyncioScheduler().call_later(0.01, callback)
    handle.cancel()
    await asyncio.sleep(0.05)

    assert calls == []
