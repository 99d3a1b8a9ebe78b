# walrus/domain/game/common.py
from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple
from urllib.parse import quote

from walrus.domain.common.events import conflict, exhausted
from walrus.domain.common.validation import name_key
from walrus.domain.helpers.decks import deal_cards, draw_asks, pick_surprise
from walrus.domain.helpers.rotation import rotate_walrus
from walrus.domain.helpers.tally import tally_rankings, top_scorers
from walrus.domain.rules import (
    ASK_OPTIONS,
    FINAL_MUST_HAVES_PER_PLAYER,
    MUST_HAVES_PER_PLAYER,
    min_must_haves,
    pick_finalists,
    pitch_is_valid,
)
from walrus.store.models import GameStore, Pitch, RoomStore
from walrus.transport.protocols import (
    OutAskSelected,
    OutError,
    OutFinalRoundStarted,
    OutGameOver,
    OutgoingEvent,
    OutPhaseChanged,
    OutRoundStarted,
    dump_events,
)

logger = logging.getLogger(__name__)

Result = Tuple[List[OutgoingEvent], List[OutgoingEvent]]


_RNG = random.Random()


def rng_for(app) -> random.Random:
    """The app-provided RNG (seeded in tests), else the process-wide one."""
    rng = getattr(app.state, "rng", None)
    return rng if rng is not None else _RNG


# ----------------------------
# Pitch helpers
# ----------------------------

def pitch_id_for(room_code: str, game: GameStore, player: str) -> str:
    # one id per name key, so "Ben Lee" and "ben-lee" never share a pitch
    slug = quote(name_key(player), safe="")
    if game.phase == "final-round":
        return f"{room_code}-final-{slug}"
    return f"{room_code}-r{game.round_no}-{slug}"


def refresh_validity(pitch: Pitch, game: GameStore) -> Pitch:
    pitch.is_valid = pitch_is_valid(pitch.title, pitch.summary, pitch.used_must_haves, min_must_haves(game.phase))
    pitch.is_disqualified = (not pitch.is_valid) or pitch.player in game.disqualified
    return pitch


def pitching_closed(game: GameStore) -> bool:
    return bool(game.pitch_status) and all(s == "ready" for s in game.pitch_status.values())


def reset_round_state(game: GameStore) -> None:
    game.ask_options = []
    game.selected_ask = None
    game.ask_ends_at = 0
    game.pitch_ends_at = 0
    game.must_haves = {}
    game.surprises = {}
    game.pitch_status = {}
    game.walrus_surprise_player = None
    game.challenges = []
    game.challenge_reveal = None
    game.last_round_winner = None
    game.viewed_pitch_ids = set()
    game.disqualified = set()


# ----------------------------
# Timers
# ----------------------------

def schedule_ask_timer(app, room_code: str, round_no: int, delay_sec: int) -> None:
    async def _fire() -> None:
        from walrus.domain.game.handlers_phase import handle_ask_timeout
        _, to_room = await handle_ask_timeout(app=app, room_code=room_code, round_no=round_no)
        await app.state.repo.append_events(room_code, dump_events(to_room))

    app.state.timers.schedule(room_code, "ask", delay_sec, _fire)


def schedule_pitch_timer(app, room_code: str, phase: str, round_no: int, delay_sec: int) -> None:
    async def _fire() -> None:
        from walrus.domain.game.handlers_phase import handle_pitch_timeout
        _, to_room = await handle_pitch_timeout(app=app, room_code=room_code, phase=phase, round_no=round_no)
        await app.state.repo.append_events(room_code, dump_events(to_room))

    app.state.timers.schedule(room_code, "pitch", delay_sec, _fire)


# ----------------------------
# Transitions
# ----------------------------

async def start_deal(
    *,
    app,
    room_code: str,
    room: RoomStore,
    game: GameStore,
    ts: int,
) -> Tuple[List[OutgoingEvent], Optional[OutError]]:
    """
    Enter DEAL for the next round: rotate the Walrus, offer asks, deal
    must-haves to every non-walrus player and hide one surprise card.
    Mutates game; caller saves.
    """
    settings = app.state.settings
    live = [p.name for p in room.players]
    if len(live) < settings.MIN_PLAYERS:
        return [], conflict("NOT_ENOUGH_PLAYERS", f"Need at least {settings.MIN_PLAYERS} players")

    rng = rng_for(app)
    queue, idx, walrus = rotate_walrus(
        queue=game.walrus_queue,
        index=game.walrus_index,
        current=game.walrus,
        live_names=live,
        rng=rng,
    )
    pitchers = [n for n in live if n != walrus]
    try:
        hands = deal_cards(rng, pitchers, MUST_HAVES_PER_PLAYER)
    except ValueError as e:
        return [], exhausted("DECK_EXHAUSTED", str(e))

    surprise_player = rng.choice(pitchers)
    asks = draw_asks(rng, ASK_OPTIONS, exclude=game.used_asks)

    await app.state.repo.clear_pitches(room_code)
    reset_round_state(game)

    game.phase = "deal"
    game.round_no += 1
    game.walrus_queue = queue
    game.walrus_index = idx
    game.walrus = walrus
    game.ask_options = asks
    game.must_haves = hands
    game.surprises = {n: (pick_surprise(rng) if n == surprise_player else None) for n in pitchers}
    game.walrus_surprise_player = surprise_player
    game.pitch_status = {n: "pending" for n in pitchers}
    for n in live:
        game.player_scores.setdefault(n, 0.0)
    game.ask_ends_at = ts + game.ask_timer_sec

    schedule_ask_timer(app, room_code, game.round_no, game.ask_timer_sec)
    logger.info("Room %s round %s dealt, walrus=%s", room_code, game.round_no, walrus)

    return [
        OutRoundStarted(round_no=game.round_no, walrus=walrus, ask_options=asks),
        OutPhaseChanged(phase="deal", round_no=game.round_no, ends_at=game.ask_ends_at),
    ], None


def enter_pitch_phase(*, app, room_code: str, game: GameStore, ts: int, ask: str, auto: bool) -> List[OutgoingEvent]:
    """DEAL -> PITCH. Mutates game; caller saves."""
    game.selected_ask = ask
    game.used_asks.append(ask)
    game.phase = "pitch"
    for name in game.pitch_status:
        game.pitch_status[name] = "drafting"
    game.ask_ends_at = 0
    game.pitch_ends_at = ts + game.pitch_timer_sec

    app.state.timers.cancel(room_code, "ask")
    schedule_pitch_timer(app, room_code, "pitch", game.round_no, game.pitch_timer_sec)

    return [
        OutAskSelected(ask=ask, auto=auto),
        OutPhaseChanged(phase="pitch", round_no=game.round_no, ends_at=game.pitch_ends_at),
    ]


async def close_pitching(*, app, room_code: str, game: GameStore, ts: int) -> List[OutgoingEvent]:
    """
    Lock every pitcher. Anyone without a pitch gets an empty (invalid) one.
    In a normal round this moves PITCH -> REVEAL. Mutates game; caller saves.
    """
    repo = app.state.repo
    for name in list(game.pitch_status):
        pid = pitch_id_for(room_code, game, name)
        if await repo.get_pitch(room_code, pid) is None:
            empty = Pitch(id=pid, player=name, round_no=game.round_no, submitted_at=ts)
            await repo.upsert_pitch(room_code, refresh_validity(empty, game))
        game.pitch_status[name] = "ready"

    game.pitch_ends_at = 0
    app.state.timers.cancel(room_code, "pitch")

    if game.phase == "pitch":
        game.phase = "reveal"
        return [OutPhaseChanged(phase="reveal", round_no=game.round_no)]
    return []


async def start_final_round(
    *,
    app,
    room_code: str,
    room: RoomStore,
    game: GameStore,
    ts: int,
) -> Tuple[List[OutgoingEvent], Optional[OutError]]:
    """
    RESULTS -> FINAL-ROUND. The leaders pitch, everyone else judges.
    Mutates game; caller saves.
    """
    live = [p.name for p in room.players]
    scores = {n: game.player_scores.get(n, 0.0) for n in live}
    contestants = pick_finalists(scores)
    judges = [n for n in live if n not in contestants]

    rng = rng_for(app)
    try:
        hands = deal_cards(rng, contestants, FINAL_MUST_HAVES_PER_PLAYER)
    except ValueError as e:
        return [], exhausted("DECK_EXHAUSTED", str(e))

    await app.state.repo.clear_pitches(room_code)
    reset_round_state(game)

    game.final_round_pending = False
    game.final_contestants = contestants
    game.final_judges = judges
    game.final_rankings = {}
    game.final_viewed = {j: set() for j in judges}
    game.final_tally = {}
    game.walrus = None

    if not judges:
        return settle_without_judges(room_code=room_code, game=game, scores=scores), None

    ask = draw_asks(rng, 1, exclude=game.used_asks)[0]
    game.phase = "final-round"
    game.ask_options = [ask]
    game.selected_ask = ask
    game.must_haves = hands
    game.pitch_status = {c: "drafting" for c in contestants}
    game.pitch_ends_at = ts + game.pitch_timer_sec

    app.state.timers.cancel(room_code, "ask")
    schedule_pitch_timer(app, room_code, "final-round", game.round_no, game.pitch_timer_sec)
    logger.info("Room %s final round: contestants=%s judges=%s", room_code, contestants, judges)

    return [
        OutFinalRoundStarted(contestants=contestants, judges=judges, ask=ask),
        OutPhaseChanged(phase="final-round", round_no=game.round_no, ends_at=game.pitch_ends_at),
    ], None


def settle_without_judges(*, room_code: str, game: GameStore, scores=None) -> List[OutgoingEvent]:
    """Nobody is left to rank: the current leaders take the game. Mutates game; caller saves."""
    game.phase = "results"
    game.pitch_ends_at = 0
    game.game_winners = top_scorers(game.player_scores if scores is None else scores)
    logger.info("Room %s final round settled without judges; winners=%s", room_code, game.game_winners)
    return [
        OutPhaseChanged(phase="results", round_no=game.round_no),
        OutGameOver(winners=game.game_winners, tally={}, player_scores=dict(game.player_scores)),
    ]


def run_final_tally(*, room_code: str, game: GameStore) -> List[OutgoingEvent]:
    """
    Add ranked-ballot points to every contestant and settle the winners.
    Ties at the top are co-winners. Mutates game; caller saves.
    """
    by_pitch = {pitch_id_for(room_code, game, c): c for c in game.final_contestants}
    totals = tally_rankings(game.final_rankings, list(by_pitch.keys()))

    tally = {by_pitch[pid]: pts for pid, pts in totals.items()}
    for player, pts in tally.items():
        game.player_scores[player] = game.player_scores.get(player, 0.0) + pts

    game.final_tally = tally
    game.game_winners = top_scorers(game.player_scores)
    game.phase = "results"
    logger.info("Room %s final tally %s, winners=%s", room_code, tally, game.game_winners)

    return [
        OutPhaseChanged(phase="results", round_no=game.round_no),
        OutGameOver(winners=game.game_winners, tally=tally, player_scores=dict(game.player_scores)),
    ]
