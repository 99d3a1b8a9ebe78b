# walrus/domain/common/validation.py
from __future__ import annotations

from typing import Iterable, Optional

from walrus.store.models import GameStore, PlayerStore, RoomStore


def name_key(name: Optional[str]) -> str:
    """Names match case-insensitively, ignoring surrounding whitespace."""
    return (name or "").strip().lower()


def same_name(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and name_key(a) == name_key(b)


def find_player(room: RoomStore, name: Optional[str]) -> Optional[PlayerStore]:
    for p in room.players:
        if same_name(p.name, name):
            return p
    return None


def canonical_in(names: Iterable[str], name: Optional[str]) -> Optional[str]:
    """Return the stored spelling of name from names, if present."""
    for n in names:
        if same_name(n, name):
            return n
    return None


def is_host(player: Optional[PlayerStore]) -> bool:
    """Check if player is the room host."""
    return player is not None and player.is_host


def is_walrus(player: Optional[PlayerStore], game: GameStore) -> bool:
    """Check if player is this round's Walrus."""
    return player is not None and same_name(player.name, game.walrus)


def is_judge(player: Optional[PlayerStore], game: GameStore) -> bool:
    """Check if player ranks pitches in the final round."""
    return player is not None and canonical_in(game.final_judges, player.name) is not None
