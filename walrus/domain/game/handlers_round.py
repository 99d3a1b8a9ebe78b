# walrus/domain/game/handlers_round.py
from __future__ import annotations

from typing import List, Optional, Tuple

from walrus.domain.common.events import (
    bad_phase,
    conflict,
    forbidden,
    player_not_found,
    room_not_found,
)
from walrus.domain.common.validation import find_player, is_host
from walrus.domain.game.common import Result, start_deal, start_final_round
from walrus.store.models import GameStore, RoomStore
from walrus.transport.protocols import InAdvanceRound, OutError, OutgoingEvent
from walrus.util.timeutil import now_ts


async def advance_from_results(
    *,
    app,
    room_code: str,
    room: RoomStore,
    game: GameStore,
    ts: int,
) -> Tuple[List[OutgoingEvent], Optional[OutError]]:
    """RESULTS -> final round if someone hit the threshold, else the next deal."""
    if game.game_winners:
        return [], conflict("GAME_OVER", "Game is over; restart to play again")
    if game.final_round_pending:
        return await start_final_round(app=app, room_code=room_code, room=room, game=game, ts=ts)
    return await start_deal(app=app, room_code=room_code, room=room, game=game, ts=ts)


async def handle_advance_round(*, app, room_code: str, msg: InAdvanceRound) -> Result:
    repo = app.state.repo
    ts = now_ts()

    room = await repo.get_room(room_code)
    game = await repo.get_game(room_code)
    if room is None or game is None:
        return [room_not_found(room_code)], []

    player = find_player(room, msg.player_name)
    if player is None:
        return [player_not_found(msg.player_name)], []
    if not is_host(player):
        return [forbidden("NOT_HOST", "Only the host can start the next round")], []

    if game.phase != "results":
        return [bad_phase(game.phase, "advance the round")], []

    events, err = await advance_from_results(app=app, room_code=room_code, room=room, game=game, ts=ts)
    if err:
        return [err], []

    await repo.save_game(room_code, game, ts)
    return [], events
