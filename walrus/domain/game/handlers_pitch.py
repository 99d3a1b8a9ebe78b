# walrus/domain/game/handlers_pitch.py
from __future__ import annotations

from typing import List, Optional

from walrus.domain.common.events import (
    bad_phase,
    conflict,
    forbidden,
    not_found,
    player_not_found,
    room_not_found,
)
from walrus.domain.common.validation import find_player, is_judge, is_walrus
from walrus.domain.game.common import (
    Result,
    close_pitching,
    pitch_id_for,
    pitching_closed,
    refresh_validity,
)
from walrus.store.models import GameStore, Pitch, PlayerStore
from walrus.transport.protocols import (
    InPitchViewed,
    InSetPitchStatus,
    InSubmitPitch,
    OutError,
    OutgoingEvent,
    OutPitchSaved,
    OutPitchStatusChanged,
    OutPitchViewed,
)
from walrus.util.timeutil import now_ts

PITCH_PHASES = ("pitch", "final-round")


def pitcher_error(player: Optional[PlayerStore], game: GameStore, name: str) -> Optional[OutError]:
    if player is None:
        return player_not_found(name)
    if game.phase == "pitch" and is_walrus(player, game):
        return forbidden("WALRUS_CANNOT_PITCH", "The Walrus does not pitch")
    if game.phase == "final-round" and is_judge(player, game):
        return forbidden("JUDGE_CANNOT_PITCH", "Judges do not pitch in the final round")
    if player.name not in game.pitch_status:
        return forbidden("NOT_IN_ROUND", "You were not dealt into this round")
    return None


def _clean_must_haves(used: List[str], dealt: List[str]) -> List[str]:
    """Keep dealt cards only, first occurrence wins."""
    out: List[str] = []
    for card in used:
        if card in dealt and card not in out:
            out.append(card)
    return out


async def _maybe_close(*, app, room_code: str, game: GameStore, ts: int) -> List[OutgoingEvent]:
    if pitching_closed(game):
        return await close_pitching(app=app, room_code=room_code, game=game, ts=ts)
    return []


async def handle_submit_pitch(*, app, room_code: str, msg: InSubmitPitch) -> Result:
    """
    Save (or overwrite) the player's pitch for this round.
    A ready pitch is locked unless the same submission also says ready.
    """
    repo = app.state.repo
    ts = now_ts()

    room = await repo.get_room(room_code)
    game = await repo.get_game(room_code)
    if room is None or game is None:
        return [room_not_found(room_code)], []
    if game.phase not in PITCH_PHASES:
        return [bad_phase(game.phase, "submit a pitch")], []
    if game.phase == "final-round" and pitching_closed(game):
        return [conflict("PITCHING_CLOSED", "Final pitches are locked")], []

    player = find_player(room, msg.player_name)
    err = pitcher_error(player, game, msg.player_name)
    if err:
        return [err], []
    name = player.name

    if game.pitch_status.get(name) == "ready" and msg.status != "ready":
        return [conflict("PITCH_LOCKED", "Pitch is locked in")], []

    pid = pitch_id_for(room_code, game, name)
    pitch = Pitch(
        id=pid,
        player=name,
        title=msg.title.strip(),
        summary=msg.summary.strip(),
        voice=msg.voice,
        used_must_haves=_clean_must_haves(msg.used_must_haves, game.must_haves.get(name, [])),
        ai_generated=msg.ai_generated,
        sketch_data=msg.sketch_data,
        round_no=game.round_no,
        submitted_at=ts,
    )
    refresh_validity(pitch, game)
    await repo.upsert_pitch(room_code, pitch)

    to_room: List[OutgoingEvent] = []
    if msg.status is not None and msg.status != game.pitch_status.get(name):
        game.pitch_status[name] = msg.status
        to_room.append(OutPitchStatusChanged(player=name, status=msg.status))
    to_room.extend(await _maybe_close(app=app, room_code=room_code, game=game, ts=ts))

    await repo.save_game(room_code, game, ts)
    saved = OutPitchSaved(pitch=pitch.model_dump(mode="json"))
    return [saved], to_room


async def handle_set_pitch_status(*, app, room_code: str, msg: InSetPitchStatus) -> Result:
    repo = app.state.repo
    ts = now_ts()

    room = await repo.get_room(room_code)
    game = await repo.get_game(room_code)
    if room is None or game is None:
        return [room_not_found(room_code)], []
    if game.phase not in PITCH_PHASES:
        return [bad_phase(game.phase, "change pitch status")], []
    if game.phase == "final-round" and pitching_closed(game):
        return [conflict("PITCHING_CLOSED", "Final pitches are locked")], []

    player = find_player(room, msg.player_name)
    err = pitcher_error(player, game, msg.player_name)
    if err:
        return [err], []
    name = player.name

    current = game.pitch_status.get(name)
    if current == "ready" and msg.status != "ready":
        return [conflict("PITCH_LOCKED", "Pitch is locked in")], []

    game.pitch_status[name] = msg.status
    ev = OutPitchStatusChanged(player=name, status=msg.status)
    to_room: List[OutgoingEvent] = [ev]
    to_room.extend(await _maybe_close(app=app, room_code=room_code, game=game, ts=ts))

    await repo.save_game(room_code, game, ts)
    return [ev], to_room


async def handle_pitch_viewed(*, app, room_code: str, msg: InPitchViewed) -> Result:
    """
    Reveal/vote: the Walrus ticks pitches off for the whole room.
    Final round: each judge keeps their own list.
    """
    repo = app.state.repo
    ts = now_ts()

    room = await repo.get_room(room_code)
    game = await repo.get_game(room_code)
    if room is None or game is None:
        return [room_not_found(room_code)], []

    viewer = find_player(room, msg.viewer)
    if viewer is None:
        return [player_not_found(msg.viewer)], []

    if await repo.get_pitch(room_code, msg.pitch_id) is None:
        return [not_found("PITCH_NOT_FOUND", "Pitch not found")], []

    if game.phase in ("reveal", "vote"):
        if not is_walrus(viewer, game):
            return [forbidden("NOT_WALRUS", "Only the Walrus marks pitches viewed")], []
        game.viewed_pitch_ids.add(msg.pitch_id)
    elif game.phase == "final-round":
        if not is_judge(viewer, game):
            return [forbidden("NOT_JUDGE", "Only judges mark final pitches viewed")], []
        game.final_viewed.setdefault(viewer.name, set()).add(msg.pitch_id)
    else:
        return [bad_phase(game.phase, "view pitches")], []

    await repo.save_game(room_code, game, ts)
    ev = OutPitchViewed(pitch_id=msg.pitch_id, viewer=viewer.name)
    return [ev], [ev]
