# walrus/domain/game/handlers_phase.py
from __future__ import annotations

import logging
from typing import Optional

from walrus.domain.common.events import (
    bad_phase,
    conflict,
    forbidden,
    invalid,
    player_not_found,
    room_not_found,
)
from walrus.domain.common.validation import find_player, is_host
from walrus.domain.game.common import (
    Result,
    close_pitching,
    enter_pitch_phase,
    start_deal,
)
from walrus.domain.game.handlers_round import advance_from_results
from walrus.store.models import GameStore
from walrus.transport.protocols import (
    InAdvance,
    InRestart,
    InSelectAsk,
    InSetTimers,
    OutGameRestarted,
    OutPhaseChanged,
    OutTimersChanged,
)
from walrus.util.timeutil import now_ts

logger = logging.getLogger(__name__)


async def _load_as_host(app, room_code: str, player_name: str):
    """(room, game, error) for a host-only command."""
    repo = app.state.repo
    room = await repo.get_room(room_code)
    game = await repo.get_game(room_code)
    if room is None or game is None:
        return None, None, room_not_found(room_code)
    player = find_player(room, player_name)
    if player is None:
        return None, None, player_not_found(player_name)
    if not is_host(player):
        return None, None, forbidden("NOT_HOST", "Only the host can do that")
    return room, game, None


async def handle_advance(*, app, room_code: str, msg: InAdvance) -> Result:
    """
    Host moves the game one step forward:
      lobby -> deal, deal -> pitch (first ask), pitch -> reveal,
      reveal -> vote, results -> next round or final round.
    Voting ends only through judge; the final round ends through rankings.
    """
    repo = app.state.repo
    ts = now_ts()

    room, game, err = await _load_as_host(app, room_code, msg.player_name)
    if err:
        return [err], []

    phase = game.phase
    if phase == "lobby":
        events, err = await start_deal(app=app, room_code=room_code, room=room, game=game, ts=ts)
        if err:
            return [err], []
    elif phase == "deal":
        if not game.ask_options:
            return [conflict("NO_ASKS", "No ask options to choose from")], []
        events = enter_pitch_phase(app=app, room_code=room_code, game=game, ts=ts, ask=game.ask_options[0], auto=True)
    elif phase == "pitch":
        events = await close_pitching(app=app, room_code=room_code, game=game, ts=ts)
    elif phase == "reveal":
        game.phase = "vote"
        events = [OutPhaseChanged(phase="vote", round_no=game.round_no)]
    elif phase == "vote":
        return [conflict("JUDGE_REQUIRED", "Pick a winner to finish voting")], []
    elif phase == "results":
        events, err = await advance_from_results(app=app, room_code=room_code, room=room, game=game, ts=ts)
        if err:
            return [err], []
    else:
        return [bad_phase(phase, "advance")], []

    await repo.save_game(room_code, game, ts)
    logger.info("Room %s advanced %s -> %s", room_code, phase, game.phase)
    return [], events


async def handle_select_ask(*, app, room_code: str, msg: InSelectAsk) -> Result:
    repo = app.state.repo
    ts = now_ts()

    game = await repo.get_game(room_code)
    if game is None:
        return [room_not_found(room_code)], []
    if game.phase != "deal":
        return [bad_phase(game.phase, "select an ask")], []
    if msg.ask not in game.ask_options:
        return [invalid("UNKNOWN_ASK", "Ask is not one of the offered options")], []

    events = enter_pitch_phase(app=app, room_code=room_code, game=game, ts=ts, ask=msg.ask, auto=False)
    await repo.save_game(room_code, game, ts)
    return [], events


async def handle_ask_timeout(*, app, room_code: str, round_no: int) -> Result:
    """Ask timer expired: take the first option unless the Walrus already chose."""
    repo = app.state.repo
    ts = now_ts()

    game = await repo.get_game(room_code)
    if game is None or game.phase != "deal" or game.round_no != round_no or not game.ask_options:
        return [], []

    events = enter_pitch_phase(app=app, room_code=room_code, game=game, ts=ts, ask=game.ask_options[0], auto=True)
    await repo.save_game(room_code, game, ts)
    return [], events


async def handle_pitch_timeout(*, app, room_code: str, phase: str, round_no: int) -> Result:
    """Pitch timer expired: lock everyone in, filling blanks with empty pitches."""
    repo = app.state.repo
    ts = now_ts()

    game = await repo.get_game(room_code)
    if game is None or game.phase != phase or game.round_no != round_no:
        return [], []
    if phase not in ("pitch", "final-round"):
        return [], []

    events = await close_pitching(app=app, room_code=room_code, game=game, ts=ts)
    await repo.save_game(room_code, game, ts)
    return [], events


async def handle_restart(*, app, room_code: str, msg: InRestart) -> Result:
    """
    Back to the lobby with the same roster.
    Scores reset, pitches cleared, timers cancelled; timer settings survive.
    """
    repo = app.state.repo
    ts = now_ts()

    room, game, err = await _load_as_host(app, room_code, msg.player_name)
    if err:
        return [err], []

    fresh = GameStore(ask_timer_sec=game.ask_timer_sec, pitch_timer_sec=game.pitch_timer_sec)
    fresh.player_scores = {p.name: 0.0 for p in room.players}

    app.state.timers.cancel_room(room_code)
    await repo.clear_pitches(room_code)
    await repo.save_game(room_code, fresh, ts)
    logger.info("Room %s restarted", room_code)

    return [OutGameRestarted()], [OutGameRestarted(), OutPhaseChanged(phase="lobby", round_no=0)]


async def handle_set_timers(*, app, room_code: str, msg: InSetTimers) -> Result:
    repo = app.state.repo
    ts = now_ts()

    room, game, err = await _load_as_host(app, room_code, msg.player_name)
    if err:
        return [err], []
    if game.phase != "lobby":
        return [bad_phase(game.phase, "change timers")], []

    ask: Optional[int] = msg.ask_timer_sec
    pitch: Optional[int] = msg.pitch_timer_sec
    if ask is not None:
        game.ask_timer_sec = ask
    if pitch is not None:
        game.pitch_timer_sec = pitch

    await repo.save_game(room_code, game, ts)
    ev = OutTimersChanged(ask_timer_sec=game.ask_timer_sec, pitch_timer_sec=game.pitch_timer_sec)
    return [ev], [ev]
