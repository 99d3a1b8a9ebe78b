import pytest

from walrus.domain.game.handlers_judge import handle_challenge, handle_judge
from walrus.domain.game.handlers_phase import handle_advance, handle_select_ask
from walrus.domain.game.handlers_pitch import handle_submit_pitch
from walrus.domain.game.handlers_round import handle_advance_round
from walrus.transport.protocols import (
    InAdvance,
    InAdvanceRound,
    InChallenge,
    InJudge,
    InSelectAsk,
    InSubmitPitch,
)

BEN = "WLR-100-r1-ben"
CAL = "WLR-100-r1-cal"


@pytest.fixture
def app(seated_app):
    # Ann joins first, so she is host and the first Walrus
    return seated_app


async def _to_reveal(app, code, ai=(), surprise="Ben"):
    await handle_advance(app=app, room_code=code, msg=InAdvance(player_name="Ann"))
    game = await app.state.repo.get_game(code)
    await handle_select_ask(app=app, room_code=code, msg=InSelectAsk(ask=game.ask_options[0]))

    for name in ("Ben", "Cal"):
        await handle_submit_pitch(
            app=app,
            room_code=code,
            msg=InSubmitPitch(
                player_name=name,
                title=f"{name}Corp",
                summary="It just works.",
                used_must_haves=game.must_haves[name][:2],
                ai_generated=name in ai,
                status="ready",
            ),
        )

    game = await app.state.repo.get_game(code)
    assert game.phase == "reveal"
    game.walrus_surprise_player = surprise
    await app.state.repo.save_game(code, game)
    return game


@pytest.mark.asyncio
async def test_upheld_challenge_disqualifies_pitcher(app, open_room):
    code = await open_room(scores={"Ben": 3})
    await _to_reveal(app, code, ai=("Ben",))

    to_sender, to_room = await handle_challenge(app=app, room_code=code, msg=InChallenge(accuser="Cal", pitch_id=BEN))
    challenge = to_room[0].challenge
    assert challenge["verdict"] == "upheld"
    assert challenge["correct"] is True
    assert challenge["disqualified"] == "Ben"

    game = await app.state.repo.get_game(code)
    assert game.disqualified == {"Ben"}
    assert game.player_scores["Ben"] == 2
    assert game.challenge_reveal.pitch_id == BEN
    assert (await app.state.repo.get_pitch(code, BEN)).is_disqualified


@pytest.mark.asyncio
async def test_rejected_challenge_disqualifies_accuser(app, open_room):
    code = await open_room(scores={"Cal": 2})
    await _to_reveal(app, code)

    _, to_room = await handle_challenge(app=app, room_code=code, msg=InChallenge(accuser="Cal", pitch_id=BEN))
    assert to_room[0].challenge["verdict"] == "rejected"
    assert to_room[0].challenge["correct"] is False

    game = await app.state.repo.get_game(code)
    assert game.disqualified == {"Cal"}
    assert game.player_scores["Cal"] == 2
    assert (await app.state.repo.get_pitch(code, CAL)).is_disqualified
    assert not (await app.state.repo.get_pitch(code, BEN)).is_disqualified

    to_sender, _ = await handle_challenge(app=app, room_code=code, msg=InChallenge(accuser="Cal", pitch_id=BEN))
    assert to_sender[0].code == "ACCUSER_DISQUALIFIED"

    to_sender, _ = await handle_challenge(app=app, room_code=code, msg=InChallenge(accuser="Ann", pitch_id=CAL))
    assert to_sender[0].code == "ALREADY_DISQUALIFIED"


@pytest.mark.asyncio
async def test_challenge_guards(app, open_room):
    code = await open_room()
    await handle_advance(app=app, room_code=code, msg=InAdvance(player_name="Ann"))

    to_sender, _ = await handle_challenge(app=app, room_code=code, msg=InChallenge(accuser="Cal", pitch_id=BEN))
    assert to_sender[0].code == "BAD_PHASE"

    await handle_advance(app=app, room_code=code, msg=InAdvance(player_name="Ann"))
    await handle_advance(app=app, room_code=code, msg=InAdvance(player_name="Ann"))

    to_sender, _ = await handle_challenge(app=app, room_code=code, msg=InChallenge(accuser="Ben", pitch_id=BEN))
    assert to_sender[0].code == "SELF_CHALLENGE"

    to_sender, _ = await handle_challenge(app=app, room_code=code, msg=InChallenge(accuser="Ben", pitch_id="nope"))
    assert to_sender[0].kind == "not_found"


@pytest.mark.asyncio
async def test_judge_awards_base_plus_bonus(app, open_room):
    code = await open_room()
    await _to_reveal(app, code, surprise="Ben")

    to_sender, to_room = await handle_judge(app=app, room_code=code, msg=InJudge(player_name="Ann", winner_pitch_id=CAL))
    judged = to_sender[0]
    assert judged.winner["player"] == "Cal"
    assert judged.winner["base_points"] == 1
    assert judged.winner["bonus_points"] == 0.25
    assert judged.player_scores["Cal"] == 1.25
    assert to_room[-1].phase == "results"

    game = await app.state.repo.get_game(code)
    assert game.phase == "results"
    assert game.last_round_winner.player == "Cal"
    assert game.final_round_pending is False


@pytest.mark.asyncio
async def test_judge_surprise_doubles_base_only(app, open_room):
    code = await open_room()
    await _to_reveal(app, code, surprise="Cal")

    to_sender, _ = await handle_judge(app=app, room_code=code, msg=InJudge(player_name="Ann", winner_pitch_id=CAL))
    winner = to_sender[0].winner
    assert winner["walrus_surprise_winner"] is True
    assert winner["base_points"] == 2
    assert winner["points_awarded"] == 2.25


@pytest.mark.asyncio
async def test_judge_is_walrus_or_host(app, open_room):
    code = await open_room()
    await _to_reveal(app, code)

    to_sender, _ = await handle_judge(app=app, room_code=code, msg=InJudge(player_name="Ben", winner_pitch_id=CAL))
    assert to_sender[0].kind == "authorization"
    assert (await app.state.repo.get_game(code)).phase == "reveal"


@pytest.mark.asyncio
async def test_upheld_verdict_voids_the_win(app, open_room):
    code = await open_room()
    await _to_reveal(app, code, ai=("Ben",))

    to_sender, to_room = await handle_judge(
        app=app,
        room_code=code,
        msg=InJudge(player_name="Ann", winner_pitch_id=BEN, challenge_verdicts={BEN: "upheld", CAL: "rejected"}),
    )
    assert to_room[0].type == "challenge_resolved"
    assert to_sender[0].winner is None

    game = await app.state.repo.get_game(code)
    assert game.phase == "results"
    assert "Ben" in game.disqualified
    assert "Cal" not in game.disqualified
    assert game.last_round_winner is None
    assert game.player_scores["Ben"] == 0
    assert len(game.challenges) == 1


@pytest.mark.asyncio
async def test_ineligible_winner_leaves_state(app, open_room):
    code = await open_room()
    await _to_reveal(app, code)
    await handle_challenge(app=app, room_code=code, msg=InChallenge(accuser="Cal", pitch_id=BEN))

    to_sender, _ = await handle_judge(app=app, room_code=code, msg=InJudge(player_name="Ann", winner_pitch_id=CAL))
    assert to_sender[0].code == "WINNER_NOT_ELIGIBLE"

    game = await app.state.repo.get_game(code)
    assert game.phase == "reveal"
    assert game.player_scores["Cal"] == 0


@pytest.mark.asyncio
async def test_threshold_sends_next_advance_to_final_round(app, open_room):
    code = await open_room(scores={"Ann": 1, "Ben": 2, "Cal": 4.75})
    await _to_reveal(app, code, surprise="Ben")

    to_sender, _ = await handle_judge(app=app, room_code=code, msg=InJudge(player_name="Ann", winner_pitch_id=CAL))
    assert to_sender[0].final_round_pending is True

    to_sender, to_room = await handle_advance_round(app=app, room_code=code, msg=InAdvanceRound(player_name="Ann"))
    assert to_room[0].type == "final_round_started"
    assert to_room[0].contestants == ["Cal", "Ben"]
    assert to_room[0].judges == ["Ann"]

    game = await app.state.repo.get_game(code)
    assert game.phase == "final-round"
    assert game.round_no == 1
    assert game.final_round_pending is False


@pytest.mark.asyncio
async def test_advance_round_rotates_walrus(app, open_room):
    code = await open_room()
    await _to_reveal(app, code)
    await handle_judge(app=app, room_code=code, msg=InJudge(player_name="Ann", winner_pitch_id=BEN))

    to_sender, _ = await handle_advance_round(app=app, room_code=code, msg=InAdvanceRound(player_name="Ben"))
    assert to_sender[0].kind == "authorization"

    _, to_room = await handle_advance_round(app=app, room_code=code, msg=InAdvanceRound(player_name="Ann"))
    assert to_room[0].type == "round_started"

    game = await app.state.repo.get_game(code)
    assert game.round_no == 2
    assert game.walrus == "Ben"
    assert sorted(game.must_haves) == ["Ann", "Cal"]
    assert game.last_round_winner is None
    assert await app.state.repo.list_pitches(code) == []
