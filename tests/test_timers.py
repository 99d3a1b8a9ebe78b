import asyncio
import logging

import pytest

from walrus.transport.timers import TimerRegistry


@pytest.mark.asyncio
async def test_timer_fires_once():
    timers = TimerRegistry()
    fired = []

    async def cb():
        fired.append("ask")

    timers.schedule("R1", "ask", 0.01, cb)
    assert timers.is_scheduled("R1", "ask")
    await asyncio.sleep(0.05)

    assert fired == ["ask"]
    assert not timers.is_scheduled("R1", "ask")


@pytest.mark.asyncio
async def test_rescheduling_replaces_previous():
    timers = TimerRegistry()
    fired = []

    async def first():
        fired.append("first")

    async def second():
        fired.append("second")

    timers.schedule("R1", "pitch", 0.02, first)
    timers.schedule("R1", "pitch", 0.01, second)
    await asyncio.sleep(0.06)

    assert fired == ["second"]


@pytest.mark.asyncio
async def test_cancel_room_stops_every_kind():
    timers = TimerRegistry()
    fired = []

    async def cb():
        fired.append(True)

    timers.schedule("R1", "ask", 0.01, cb)
    timers.schedule("R1", "pitch", 0.01, cb)
    timers.schedule("R2", "ask", 0.01, cb)
    timers.cancel_room("R1")
    await asyncio.sleep(0.05)

    assert fired == [True]


@pytest.mark.asyncio
async def test_callback_may_schedule_next_timer():
    timers = TimerRegistry()
    fired = []

    async def then_pitch():
        fired.append("pitch")

    async def ask_expired():
        fired.append("ask")
        timers.schedule("R1", "ask", 0.01, then_pitch)

    timers.schedule("R1", "ask", 0.01, ask_expired)
    await asyncio.sleep(0.08)

    assert fired == ["ask", "pitch"]


@pytest.mark.asyncio
async def test_failing_callback_is_logged(caplog):
    timers = TimerRegistry()

    async def boom():
        raise RuntimeError("boom")

    with caplog.at_level(logging.ERROR, logger="walrus.transport.timers"):
        timers.schedule("R1", "ask", 0.0, boom)
        await asyncio.sleep(0.03)

    assert "Timer ask for room R1 failed" in caplog.text
