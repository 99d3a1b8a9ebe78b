# walrus/domain/game/handlers_final.py
from __future__ import annotations

from typing import List

from walrus.domain.common.events import (
    bad_phase,
    conflict,
    forbidden,
    invalid,
    player_not_found,
    room_not_found,
)
from walrus.domain.common.validation import find_player, is_judge
from walrus.domain.game.common import Result, pitch_id_for, pitching_closed, run_final_tally
from walrus.domain.helpers.tally import validate_ranking
from walrus.transport.protocols import InSubmitRanking, OutgoingEvent, OutRankingReceived
from walrus.util.timeutil import now_ts


async def handle_submit_ranking(*, app, room_code: str, msg: InSubmitRanking) -> Result:
    """
    A judge ranks every finalist pitch, best first.
    Once the last judge is in, the ballots are tallied and the game ends.
    """
    repo = app.state.repo
    ts = now_ts()

    room = await repo.get_room(room_code)
    game = await repo.get_game(room_code)
    if room is None or game is None:
        return [room_not_found(room_code)], []
    if game.phase != "final-round":
        return [bad_phase(game.phase, "submit a ranking")], []

    player = find_player(room, msg.player_name)
    if player is None:
        return [player_not_found(msg.player_name)], []
    if not is_judge(player, game):
        return [forbidden("NOT_JUDGE", "Only final-round judges can rank")], []
    if not pitching_closed(game):
        return [conflict("PITCHING_OPEN", "Finalists are still pitching")], []

    expected = [pitch_id_for(room_code, game, c) for c in game.final_contestants]
    err = validate_ranking(msg.ranked_pitch_ids, expected)
    if err:
        return [invalid("BAD_RANKING", err)], []

    game.final_rankings[player.name] = list(msg.ranked_pitch_ids)
    received = OutRankingReceived(
        judge=player.name,
        submitted=len(game.final_rankings),
        needed=len(game.final_judges),
    )
    to_room: List[OutgoingEvent] = [received]
    if all(j in game.final_rankings for j in game.final_judges):
        to_room.extend(run_final_tally(room_code=room_code, game=game))

    await repo.save_game(room_code, game, ts)
    return [received], to_room
