# walrus/store/memory_repo.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from walrus.store.models import GameStore, Pitch, RoomStore


class MemoryRepo:
    """
    In-process store for rooms, game state, pitches and the polled event feed.
    Reads hand out deep copies; nothing changes until a handler saves.
    """
    def __init__(self, event_feed_max: int = 200):
        self.event_feed_max = event_feed_max
        self._rooms: Dict[str, RoomStore] = {}
        self._games: Dict[str, GameStore] = {}
        self._pitches: Dict[str, Dict[str, Pitch]] = {}
        self._events: Dict[str, List[Dict[str, Any]]] = {}
        self._event_seq: Dict[str, int] = {}

    # ----------------------------
    # Rooms
    # ----------------------------
    async def room_exists(self, room_code: str) -> bool:
        return room_code in self._rooms

    async def create_room(self, room: RoomStore, game: GameStore) -> None:
        self._rooms[room.code] = room.model_copy(deep=True)
        self._games[room.code] = game.model_copy(deep=True)
        self._pitches[room.code] = {}
        self._events[room.code] = []
        self._event_seq[room.code] = 0

    async def get_room(self, room_code: str) -> Optional[RoomStore]:
        room = self._rooms.get(room_code)
        return room.model_copy(deep=True) if room else None

    async def save_room(self, room: RoomStore) -> None:
        self._rooms[room.code] = room.model_copy(deep=True)

    async def list_room_codes(self) -> List[str]:
        return sorted(self._rooms.keys())

    async def delete_room(self, room_code: str) -> None:
        self._rooms.pop(room_code, None)
        self._games.pop(room_code, None)
        self._pitches.pop(room_code, None)
        self._events.pop(room_code, None)
        self._event_seq.pop(room_code, None)

    # ----------------------------
    # Game state
    # ----------------------------
    async def get_game(self, room_code: str) -> Optional[GameStore]:
        game = self._games.get(room_code)
        return game.model_copy(deep=True) if game else None

    async def save_game(self, room_code: str, game: GameStore, ts: Optional[int] = None) -> None:
        """Persist game state and mirror its phase onto the room status."""
        if room_code not in self._rooms:
            return
        self._games[room_code] = game.model_copy(deep=True)
        room = self._rooms[room_code]
        room.status = game.phase
        if ts is not None:
            room.last_activity = ts

    # ----------------------------
    # Pitches
    # ----------------------------
    async def upsert_pitch(self, room_code: str, pitch: Pitch) -> None:
        self._pitches.setdefault(room_code, {})[pitch.id] = pitch.model_copy(deep=True)

    async def get_pitch(self, room_code: str, pitch_id: str) -> Optional[Pitch]:
        pitch = self._pitches.get(room_code, {}).get(pitch_id)
        return pitch.model_copy(deep=True) if pitch else None

    async def list_pitches(self, room_code: str) -> List[Pitch]:
        pitches = [p.model_copy(deep=True) for p in self._pitches.get(room_code, {}).values()]
        pitches.sort(key=lambda p: (p.submitted_at, p.id))
        return pitches

    async def clear_pitches(self, room_code: str) -> None:
        if room_code in self._pitches:
            self._pitches[room_code] = {}

    # ----------------------------
    # Event feed (polled by clients)
    # ----------------------------
    async def append_events(self, room_code: str, events: List[Dict[str, Any]]) -> None:
        if room_code not in self._events or not events:
            return
        feed = self._events[room_code]
        for e in events:
            self._event_seq[room_code] += 1
            feed.append({"seq": self._event_seq[room_code], **e})
        if len(feed) > self.event_feed_max:
            del feed[: len(feed) - self.event_feed_max]

    async def get_events(self, room_code: str, since: int = 0) -> List[Dict[str, Any]]:
        return [dict(e) for e in self._events.get(room_code, []) if e["seq"] > since]
