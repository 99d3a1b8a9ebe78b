# walrus/transport/timers.py
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict

from walrus.domain.common.types import TimerKind

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], Awaitable[None]]


class TimerRegistry:
    """
    In-memory one-shot timers.
    - room_code -> kind -> asyncio.Task
    Scheduling a kind cancels the previous task of that kind for the room.
    """
    def __init__(self) -> None:
        self._rooms: Dict[str, Dict[str, asyncio.Task]] = {}

    def schedule(self, room_code: str, kind: TimerKind, delay_sec: float, callback: TimerCallback) -> None:
        self.cancel(room_code, kind)
        task = asyncio.get_running_loop().create_task(self._run(room_code, kind, delay_sec, callback))
        self._rooms.setdefault(room_code, {})[kind] = task

    def cancel(self, room_code: str, kind: TimerKind) -> None:
        room = self._rooms.get(room_code)
        if not room:
            return
        task = room.pop(kind, None)
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        if not room:
            self._rooms.pop(room_code, None)

    def cancel_room(self, room_code: str) -> None:
        for kind in list(self._rooms.get(room_code, {}).keys()):
            self.cancel(room_code, kind)

    def cancel_all(self) -> None:
        for room_code in list(self._rooms.keys()):
            self.cancel_room(room_code)

    def is_scheduled(self, room_code: str, kind: str) -> bool:
        task = self._rooms.get(room_code, {}).get(kind)
        return task is not None and not task.done()

    async def _run(self, room_code: str, kind: str, delay_sec: float, callback: TimerCallback) -> None:
        await asyncio.sleep(max(0.0, delay_sec))
        # drop our own handle before firing so the callback may schedule the next timer
        room = self._rooms.get(room_code, {})
        if room.get(kind) is asyncio.current_task():
            room.pop(kind, None)
            if not room:
                self._rooms.pop(room_code, None)
        try:
            await callback()
        except Exception:
            logger.exception("Timer %s for room %s failed", kind, room_code)
