# walrus/domain/lifecycle/handlers.py
from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional, Tuple

from walrus.domain.common.events import (
    conflict,
    exhausted,
    invalid,
    player_not_found,
    room_not_found,
)
from walrus.domain.common.validation import find_player, name_key, same_name
from walrus.domain.game.common import (
    close_pitching,
    pitch_id_for,
    pitching_closed,
    run_final_tally,
    settle_without_judges,
)
from walrus.domain.helpers.decks import MASCOTS, free_mascots
from walrus.store.models import GameStore, PlayerStore, RoomStore
from walrus.transport.protocols import (
    InCreateRoom,
    InGameSnapshot,
    InJoin,
    InLeave,
    InListPitches,
    InRoomSummary,
    InSetMascot,
    InToggleVoice,
    OutgoingEvent,
    OutGameSnapshot,
    OutPitchList,
    OutPlayerJoined,
    OutPlayerLeft,
    OutPlayerUpdated,
    OutRoomCreated,
    OutRoomSettingsChanged,
    OutRoomSnapshot,
)
from walrus.util.timeutil import now_ts

logger = logging.getLogger(__name__)

# Returns: (to_sender, to_room)
Result = Tuple[List[OutgoingEvent], List[OutgoingEvent]]

CODE_ATTEMPTS = 50


def _gen_room_code() -> str:
    return f"WLR-{random.randint(100, 999)}"


def _room_view(room: RoomStore) -> Dict[str, Any]:
    return room.model_dump(mode="json")


def _new_game(app) -> GameStore:
    settings = app.state.settings
    return GameStore(ask_timer_sec=settings.ASK_TIMER_SEC, pitch_timer_sec=settings.PITCH_TIMER_SEC)


def _should_show_secret(*, game: GameStore, viewer: Optional[str], owner: str) -> bool:
    if game.phase in ("results", "lobby"):
        return True
    return same_name(viewer, owner)


def build_room_snapshot(room: RoomStore) -> OutRoomSnapshot:
    return OutRoomSnapshot(
        room={k: v for k, v in _room_view(room).items() if k != "players"},
        players=[p.model_dump(mode="json") for p in room.players],
        capacity=room.cap,
    )


def build_game_snapshot(game: GameStore, *, viewer: Optional[str] = None) -> Dict[str, Any]:
    """
    Serialize game state for clients.
    Sets become sorted lists and mappings are key-ordered.
    With a viewer, other players' surprise cards stay hidden until results.
    """
    data = game.model_dump(mode="json")
    data["viewed_pitch_ids"] = sorted(game.viewed_pitch_ids)
    data["disqualified"] = sorted(game.disqualified)
    data["final_viewed"] = {k: sorted(v) for k, v in sorted(game.final_viewed.items())}
    data["player_scores"] = dict(sorted(game.player_scores.items()))
    data["must_haves"] = dict(sorted(game.must_haves.items()))
    data["pitch_status"] = dict(sorted(game.pitch_status.items()))
    data["final_rankings"] = {k: list(v) for k, v in sorted(game.final_rankings.items())}
    data["pitching_closed"] = pitching_closed(game)

    surprises = dict(sorted(game.surprises.items()))
    if viewer is not None:
        surprises = {
            k: (v if _should_show_secret(game=game, viewer=viewer, owner=k) else None)
            for k, v in surprises.items()
        }
        if not _should_show_secret(game=game, viewer=viewer, owner=game.walrus_surprise_player or ""):
            data["walrus_surprise_player"] = None
    data["surprises"] = surprises
    return data


async def _drop_from_game(*, app, room_code: str, game: GameStore, name: str, ts: int) -> List[OutgoingEvent]:
    """
    Forget a departed player's per-game bookkeeping, then re-check the
    "everyone is done" conditions that may now hold.
    """
    if game.phase == "final-round" and name in game.final_contestants:
        gone = pitch_id_for(room_code, game, name)
        game.final_rankings = {j: [pid for pid in b if pid != gone] for j, b in game.final_rankings.items()}

    game.player_scores.pop(name, None)
    game.pitch_status.pop(name, None)
    game.must_haves.pop(name, None)
    game.surprises.pop(name, None)
    game.disqualified.discard(name)
    game.final_rankings.pop(name, None)
    game.final_viewed.pop(name, None)
    game.final_contestants = [c for c in game.final_contestants if c != name]
    game.final_judges = [j for j in game.final_judges if j != name]

    events: List[OutgoingEvent] = []
    if game.phase == "pitch" and pitching_closed(game):
        events.extend(await close_pitching(app=app, room_code=room_code, game=game, ts=ts))
    elif game.phase == "final-round" and not game.final_judges:
        app.state.timers.cancel(room_code, "pitch")
        events.extend(settle_without_judges(room_code=room_code, game=game))
    elif game.phase == "final-round" and pitching_closed(game):
        if all(j in game.final_rankings for j in game.final_judges):
            events.extend(run_final_tally(room_code=room_code, game=game))
    return events


# -------------------------
# Handlers
# -------------------------

async def handle_create_room(*, app, room_code: str, msg: InCreateRoom) -> Result:
    """
    create_room ignores the URL room code and always generates a fresh one.
    The creator becomes host.
    """
    repo = app.state.repo
    settings = app.state.settings
    ts = now_ts()

    code = None
    for _ in range(CODE_ATTEMPTS):
        candidate = _gen_room_code()
        if not await repo.room_exists(candidate):
            code = candidate
            break
    if code is None:
        return [exhausted("NO_ROOM_CODE", "No free room code available")], []

    host_name = (msg.host_name or "").strip() or "Host"
    host = PlayerStore(name=host_name, is_host=True, mascot=random.choice(MASCOTS), joined_at=ts)
    room = RoomStore(
        code=code,
        status="lobby",
        players=[host],
        cap=settings.ROOM_CAPACITY,
        created_at=ts,
        last_activity=ts,
    )
    game = _new_game(app)
    game.player_scores[host_name] = 0.0

    await repo.create_room(room, game)
    logger.info("Room %s created by %s", code, host_name)

    return [OutRoomCreated(room_code=code, room=_room_view(room))], []


async def handle_join(*, app, room_code: str, msg: InJoin) -> Result:
    """
    Join:
    - room must exist and have space
    - names are unique case-insensitively
    - a free mascot is assigned
    """
    repo = app.state.repo
    ts = now_ts()

    room = await repo.get_room(room_code)
    if room is None:
        return [room_not_found(room_code)], []

    name = msg.name.strip()
    if not name:
        return [invalid("NAME_REQUIRED", "Player name is required")], []

    if len(room.players) >= room.cap:
        return [exhausted("ROOM_FULL", "Room is full")], []

    if find_player(room, name) is not None:
        return [conflict("NAME_TAKEN", "Name already taken")], []

    mascots = free_mascots(p.mascot for p in room.players)
    if not mascots:
        return [exhausted("NO_MASCOT", "No mascot available")], []

    player = PlayerStore(name=name, is_host=not room.players, mascot=random.choice(mascots), joined_at=ts)
    room.players.append(player)
    room.last_activity = ts

    game = await repo.get_game(room_code) or _new_game(app)
    game.player_scores.setdefault(name, 0.0)

    await repo.save_room(room)
    await repo.save_game(room_code, game, ts)

    return [build_room_snapshot(room)], [OutPlayerJoined(name=name, mascot=player.mascot)]


async def handle_leave(*, app, room_code: str, msg: InLeave) -> Result:
    """
    Leave: remove the player; the earliest-joined remaining player becomes
    host if the host left.
    """
    repo = app.state.repo
    ts = now_ts()

    room = await repo.get_room(room_code)
    if room is None:
        return [room_not_found(room_code)], []

    player = find_player(room, msg.name)
    if player is None:
        return [player_not_found(msg.name)], []

    room.players = [p for p in room.players if not same_name(p.name, player.name)]
    new_host = None
    if player.is_host and room.players:
        room.players.sort(key=lambda p: p.joined_at)
        for i, p in enumerate(room.players):
            p.is_host = i == 0
        new_host = room.players[0].name
    room.last_activity = ts

    to_room: List[OutgoingEvent] = [OutPlayerLeft(name=player.name, new_host=new_host)]
    game = await repo.get_game(room_code)
    if game is not None:
        to_room.extend(await _drop_from_game(app=app, room_code=room_code, game=game, name=player.name, ts=ts))

    if not room.players:
        app.state.timers.cancel_room(room_code)

    await repo.save_room(room)
    if game is not None:
        await repo.save_game(room_code, game, ts)

    return [build_room_snapshot(room)], to_room


async def handle_set_mascot(*, app, room_code: str, msg: InSetMascot) -> Result:
    repo = app.state.repo
    ts = now_ts()

    room = await repo.get_room(room_code)
    if room is None:
        return [room_not_found(room_code)], []

    player = find_player(room, msg.player_name)
    if player is None:
        return [player_not_found(msg.player_name)], []

    mascot = msg.mascot.strip().lower()
    if mascot not in MASCOTS:
        return [invalid("UNKNOWN_MASCOT", f"Unknown mascot: {msg.mascot}")], []

    if any(p.mascot == mascot and name_key(p.name) != name_key(player.name) for p in room.players):
        return [conflict("MASCOT_TAKEN", "Mascot already taken")], []

    player.mascot = mascot
    room.last_activity = ts
    await repo.save_room(room)

    view = player.model_dump(mode="json")
    return [OutPlayerUpdated(player=view)], [OutPlayerUpdated(player=view)]


async def handle_toggle_voice(*, app, room_code: str, msg: InToggleVoice) -> Result:
    repo = app.state.repo
    ts = now_ts()

    room = await repo.get_room(room_code)
    if room is None:
        return [room_not_found(room_code)], []

    room.robot_voice_enabled = msg.enabled
    room.last_activity = ts
    await repo.save_room(room)

    ev = OutRoomSettingsChanged(robot_voice_enabled=msg.enabled)
    return [ev], [ev]


async def handle_room_summary(*, app, room_code: str, msg: InRoomSummary) -> Result:
    room = await app.state.repo.get_room(room_code)
    if room is None:
        return [room_not_found(room_code)], []
    return [build_room_snapshot(room)], []


async def handle_game_snapshot(*, app, room_code: str, msg: InGameSnapshot) -> Result:
    game = await app.state.repo.get_game(room_code)
    if game is None:
        return [room_not_found(room_code)], []
    return [OutGameSnapshot(game=build_game_snapshot(game, viewer=msg.viewer))], []


async def handle_list_pitches(*, app, room_code: str, msg: InListPitches) -> Result:
    repo = app.state.repo
    if not await repo.room_exists(room_code):
        return [room_not_found(room_code)], []
    pitches = await repo.list_pitches(room_code)
    return [OutPitchList(pitches=[p.model_dump(mode="json") for p in pitches])], []
