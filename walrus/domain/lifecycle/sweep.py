# walrus/domain/lifecycle/sweep.py
from __future__ import annotations

import asyncio
import logging
from typing import List

from walrus.util.timeutil import now_ts

logger = logging.getLogger(__name__)


async def sweep_idle_rooms(*, repo, timers, idle_sec: int, ts: int) -> List[str]:
    """
    Evict rooms that are empty and have been idle for idle_sec.
    Emptiness is checked again right before deleting.
    Returns the evicted room codes.
    """
    stale = []
    for code in await repo.list_room_codes():
        room = await repo.get_room(code)
        if room is None:
            continue
        if not room.players and ts - room.last_activity >= idle_sec:
            stale.append(code)

    evicted = []
    for code in stale:
        room = await repo.get_room(code)
        if room is None or room.players:
            continue
        timers.cancel_room(code)
        await repo.delete_room(code)
        evicted.append(code)
        logger.info("Room %s evicted after %ss idle", code, ts - room.last_activity)
    return evicted


async def run_sweeper(app) -> None:
    """Background loop; cancelled on shutdown."""
    settings = app.state.settings
    while True:
        await asyncio.sleep(settings.SWEEP_INTERVAL_SEC)
        try:
            await sweep_idle_rooms(
                repo=app.state.repo,
                timers=app.state.timers,
                idle_sec=settings.ROOM_IDLE_SEC,
                ts=now_ts(),
            )
        except Exception:
            logger.exception("Idle room sweep failed")
