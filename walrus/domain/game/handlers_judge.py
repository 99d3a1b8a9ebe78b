# walrus/domain/game/handlers_judge.py
from __future__ import annotations

import logging
from typing import List

from walrus.domain.common.events import (
    bad_phase,
    conflict,
    forbidden,
    invalid,
    not_found,
    player_not_found,
    room_not_found,
)
from walrus.domain.common.validation import find_player, is_host, is_walrus, same_name
from walrus.domain.game.common import Result, pitch_id_for
from walrus.domain.rules import (
    apply_penalty,
    resolve_challenge,
    round_award,
    threshold_reached,
    winner_check,
)
from walrus.store.models import Challenge, GameStore, Pitch, RoundWinner
from walrus.transport.protocols import (
    InChallenge,
    InJudge,
    OutChallengeResolved,
    OutgoingEvent,
    OutPhaseChanged,
    OutRoundJudged,
)
from walrus.util.timeutil import now_ts

logger = logging.getLogger(__name__)

JUDGING_PHASES = ("reveal", "vote")


async def _disqualify(*, repo, room_code: str, game: GameStore, player: str) -> None:
    game.disqualified.add(player)
    own = await repo.get_pitch(room_code, pitch_id_for(room_code, game, player))
    if own is not None:
        own.is_disqualified = True
        await repo.upsert_pitch(room_code, own)


async def apply_accusation(*, app, room_code: str, game: GameStore, pitch: Pitch, accuser: str, ts: int) -> Challenge:
    """
    Resolve an AI accusation on the spot and apply its consequences.
    Mutates game; caller saves.
    """
    repo = app.state.repo
    settings = app.state.settings

    verdict, correct, loser = resolve_challenge(pitch, accuser)
    await _disqualify(repo=repo, room_code=room_code, game=game, player=loser)
    if correct:
        game.player_scores[loser] = apply_penalty(game.player_scores.get(loser, 0.0), settings.CHALLENGE_PENALTY)

    challenge = Challenge(
        accuser=accuser,
        pitch_id=pitch.id,
        target=pitch.player,
        verdict=verdict,
        correct=correct,
        disqualified=loser,
        created_at=ts,
    )
    game.challenges.append(challenge)
    game.challenge_reveal = challenge
    logger.info("Room %s: %s accused %s (%s), %s disqualified", room_code, accuser, pitch.player, verdict, loser)
    return challenge


async def handle_challenge(*, app, room_code: str, msg: InChallenge) -> Result:
    repo = app.state.repo
    ts = now_ts()

    room = await repo.get_room(room_code)
    game = await repo.get_game(room_code)
    if room is None or game is None:
        return [room_not_found(room_code)], []
    if game.phase not in JUDGING_PHASES:
        return [bad_phase(game.phase, "challenge")], []

    accuser = find_player(room, msg.accuser)
    if accuser is None:
        return [player_not_found(msg.accuser)], []

    pitch = await repo.get_pitch(room_code, msg.pitch_id)
    if pitch is None:
        return [not_found("PITCH_NOT_FOUND", "Pitch not found")], []
    if same_name(pitch.player, accuser.name):
        return [invalid("SELF_CHALLENGE", "You cannot challenge your own pitch")], []
    if accuser.name in game.disqualified:
        return [forbidden("ACCUSER_DISQUALIFIED", "Disqualified players cannot challenge")], []
    if pitch.is_disqualified or pitch.player in game.disqualified:
        return [conflict("ALREADY_DISQUALIFIED", "Pitch is already out of the running")], []

    challenge = await apply_accusation(app=app, room_code=room_code, game=game, pitch=pitch, accuser=accuser.name, ts=ts)
    await repo.save_game(room_code, game, ts)

    ev = OutChallengeResolved(challenge=challenge.model_dump(mode="json"))
    return [ev], [ev]


async def handle_judge(*, app, room_code: str, msg: InJudge) -> Result:
    """
    Walrus (or host) picks the round winner.
    Upheld verdicts are resolved as accusations first; if they knock out the
    chosen winner, nobody scores this round.
    """
    repo = app.state.repo
    settings = app.state.settings
    ts = now_ts()

    room = await repo.get_room(room_code)
    game = await repo.get_game(room_code)
    if room is None or game is None:
        return [room_not_found(room_code)], []
    if game.phase not in JUDGING_PHASES:
        return [bad_phase(game.phase, "judge")], []

    judge = find_player(room, msg.player_name)
    if judge is None:
        return [player_not_found(msg.player_name)], []
    if not (is_walrus(judge, game) or is_host(judge)):
        return [forbidden("NOT_JUDGE", "Only the Walrus or host can judge")], []

    winner = await repo.get_pitch(room_code, msg.winner_pitch_id)
    reason = winner_check(winner, sorted(game.disqualified))
    if reason:
        if winner is None:
            return [not_found("PITCH_NOT_FOUND", reason)], []
        return [invalid("WINNER_NOT_ELIGIBLE", reason)], []

    accused: List[Pitch] = []
    for pid, verdict in msg.challenge_verdicts.items():
        if verdict != "upheld":
            continue
        target = await repo.get_pitch(room_code, pid)
        if target is None:
            return [not_found("PITCH_NOT_FOUND", f"Pitch {pid} not found")], []
        accused.append(target)

    to_room: List[OutgoingEvent] = []
    for target in accused:
        if target.player in game.disqualified:
            continue
        challenge = await apply_accusation(app=app, room_code=room_code, game=game, pitch=target, accuser=judge.name, ts=ts)
        to_room.append(OutChallengeResolved(challenge=challenge.model_dump(mode="json")))

    round_winner = None
    if winner.player not in game.disqualified:
        base, bonus, total = round_award(
            used_count=len(winner.used_must_haves),
            surprise_winner=winner.player == game.walrus_surprise_player,
            base_points=settings.BASE_POINTS,
            surprise_multiplier=settings.SURPRISE_MULTIPLIER,
            must_have_bonus=settings.MUST_HAVE_BONUS,
        )
        game.player_scores[winner.player] = game.player_scores.get(winner.player, 0.0) + total
        round_winner = RoundWinner(
            round_no=game.round_no,
            player=winner.player,
            pitch_id=winner.id,
            title=winner.title,
            walrus_surprise_winner=winner.player == game.walrus_surprise_player,
            base_points=base,
            bonus_points=bonus,
            points_awarded=total,
            created_at=ts,
        )
    game.last_round_winner = round_winner

    game.phase = "results"
    game.final_round_pending = threshold_reached(game.player_scores, settings.WIN_THRESHOLD)

    await repo.save_game(room_code, game, ts)
    logger.info(
        "Room %s round %s judged, winner=%s",
        room_code, game.round_no, round_winner.player if round_winner else None,
    )

    judged = OutRoundJudged(
        round_no=game.round_no,
        winner=round_winner.model_dump(mode="json") if round_winner else None,
        player_scores=dict(game.player_scores),
        disqualified=sorted(game.disqualified),
        final_round_pending=game.final_round_pending,
    )
    to_room.extend([judged, OutPhaseChanged(phase="results", round_no=game.round_no)])
    return [judged], to_room
