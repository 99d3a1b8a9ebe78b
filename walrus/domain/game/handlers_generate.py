# walrus/domain/game/handlers_generate.py
from __future__ import annotations

import logging

from walrus.domain.common.events import (
    bad_phase,
    conflict,
    exhausted,
    player_not_found,
    room_not_found,
)
from walrus.domain.common.validation import find_player
from walrus.domain.game.common import Result
from walrus.domain.game.handlers_pitch import PITCH_PHASES, pitcher_error
from walrus.transport.protocols import InGeneratePitch, OutPitchDeclined, OutPitchGenerated
from walrus.util.timeutil import now_ts

logger = logging.getLogger(__name__)


async def handle_generate_pitch(*, app, room_code: str, msg: InGeneratePitch) -> Result:
    """
    Paid AI draft. The player's score is the balance; the cost is taken
    only when the backend actually produced text.
    """
    repo = app.state.repo
    cost = app.state.settings.AI_PITCH_COST

    room = await repo.get_room(room_code)
    game = await repo.get_game(room_code)
    if room is None or game is None:
        return [room_not_found(room_code)], []
    if game.phase not in PITCH_PHASES:
        return [bad_phase(game.phase, "generate a pitch")], []

    player = find_player(room, msg.player_name)
    err = pitcher_error(player, game, msg.player_name)
    if err:
        return [err], []
    name = player.name

    if game.player_scores.get(name, 0.0) < cost:
        return [exhausted("INSUFFICIENT_BALANCE", f"Generating a pitch costs {cost} points")], []

    generator = getattr(app.state, "generator", None)
    if generator is None:
        return [OutPitchDeclined(reason="Pitch generation is not available")], []

    result = await generator.generate(game.selected_ask or "", game.must_haves.get(name, []), game.surprises.get(name))
    if not result.ok:
        logger.warning("Room %s: pitch generation for %s declined (%s)", room_code, name, result.reason)
        return [OutPitchDeclined(reason=result.reason)], []

    # state may have moved on while the request was in flight
    game = await repo.get_game(room_code)
    if game is None:
        return [room_not_found(room_code)], []
    if game.phase not in PITCH_PHASES or name not in game.pitch_status:
        return [conflict("ROUND_MOVED_ON", "The round ended before the draft came back")], []
    balance = game.player_scores.get(name)
    if balance is None:
        return [player_not_found(name)], []
    if balance < cost:
        return [exhausted("INSUFFICIENT_BALANCE", f"Generating a pitch costs {cost} points")], []

    game.player_scores[name] = balance - cost
    await repo.save_game(room_code, game, now_ts())

    return [OutPitchGenerated(text=result.text, cost=cost, balance=game.player_scores[name])], []
