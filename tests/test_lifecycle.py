import pytest

from walrus.domain.game.handlers_phase import handle_advance, handle_select_ask
from walrus.domain.game.handlers_pitch import handle_set_pitch_status
from walrus.domain.helpers.decks import MASCOTS
from walrus.domain.lifecycle.handlers import (
    handle_create_room,
    handle_game_snapshot,
    handle_join,
    handle_leave,
    handle_set_mascot,
    handle_toggle_voice,
)
from walrus.domain.lifecycle.sweep import sweep_idle_rooms
from walrus.store.models import GameStore, PlayerStore, RoomStore
from walrus.transport.protocols import (
    InAdvance,
    InCreateRoom,
    InGameSnapshot,
    InJoin,
    InLeave,
    InSelectAsk,
    InSetMascot,
    InSetPitchStatus,
    InToggleVoice,
)


def _types(events):
    return [e.type for e in events]


@pytest.mark.asyncio
async def test_create_room_makes_host(app):
    to_sender, to_room = await handle_create_room(app=app, room_code="", msg=InCreateRoom(host_name="  Ann "))
    created = to_sender[0]
    assert created.type == "room_created"
    assert created.room_code.startswith("WLR-")
    assert len(created.room_code) == 7
    assert to_room == []

    room = await app.state.repo.get_room(created.room_code)
    assert [p.name for p in room.players] == ["Ann"]
    assert room.players[0].is_host
    assert room.players[0].mascot is not None


@pytest.mark.asyncio
async def test_create_room_default_host_name(app):
    to_sender, _ = await handle_create_room(app=app, room_code="", msg=InCreateRoom())
    room = await app.state.repo.get_room(to_sender[0].room_code)
    assert room.players[0].name == "Host"


@pytest.mark.asyncio
async def test_join_rejections(app, open_room):
    code = await open_room(names=("Ann", "Ben"))

    to_sender, _ = await handle_join(app=app, room_code="WLR-999", msg=InJoin(name="Cal"))
    assert to_sender[0].kind == "not_found"

    to_sender, _ = await handle_join(app=app, room_code=code, msg=InJoin(name="bEn"))
    assert to_sender[0].code == "NAME_TAKEN"
    assert to_sender[0].kind == "conflict"

    to_sender, to_room = await handle_join(app=app, room_code=code, msg=InJoin(name="Cal"))
    assert to_sender[0].type == "room_snapshot"
    assert _types(to_room) == ["player_joined"]
    game = await app.state.repo.get_game(code)
    assert game.player_scores["Cal"] == 0


@pytest.mark.asyncio
async def test_join_full_room(app, open_room):
    code = await open_room(names=tuple(f"P{i}" for i in range(8)))
    to_sender, _ = await handle_join(app=app, room_code=code, msg=InJoin(name="Late"))
    assert to_sender[0].code == "ROOM_FULL"
    assert to_sender[0].kind == "resource_exhausted"


@pytest.mark.asyncio
async def test_join_without_free_mascot(app):
    repo = app.state.repo
    players = [PlayerStore(name=f"P{i}", mascot=m, joined_at=i, is_host=i == 0) for i, m in enumerate(MASCOTS)]
    await repo.create_room(RoomStore(code="WLR-200", players=players, cap=20, created_at=0, last_activity=0), GameStore())

    to_sender, _ = await handle_join(app=app, room_code="WLR-200", msg=InJoin(name="Late"))
    assert to_sender[0].code == "NO_MASCOT"
    assert len((await repo.get_room("WLR-200")).players) == len(MASCOTS)


@pytest.mark.asyncio
async def test_leave_reassigns_host(app, open_room):
    code = await open_room()
    to_sender, to_room = await handle_leave(app=app, room_code=code, msg=InLeave(name="ann"))

    assert to_room[0].type == "player_left"
    assert to_room[0].new_host == "Ben"
    room = await app.state.repo.get_room(code)
    assert [p.name for p in room.players] == ["Ben", "Cal"]
    assert [p.is_host for p in room.players] == [True, False]
    game = await app.state.repo.get_game(code)
    assert "Ann" not in game.player_scores


@pytest.mark.asyncio
async def test_walrus100_scenario(seated_app):
    app = seated_app
    to_sender, _ = await handle_create_room(app=app, room_code="", msg=InCreateRoom(host_name="Ann"))
    code = to_sender[0].room_code
    await handle_join(app=app, room_code=code, msg=InJoin(name="Ben"))
    await handle_join(app=app, room_code=code, msg=InJoin(name="Cal"))

    to_sender, to_room = await handle_advance(app=app, room_code=code, msg=InAdvance(player_name="Ann"))
    assert to_sender == []
    assert _types(to_room) == ["round_started", "phase_changed"]

    game = await app.state.repo.get_game(code)
    assert game.phase == "deal"
    assert game.round_no == 1
    assert game.walrus == "Ann"
    assert sorted(game.must_haves) == ["Ben", "Cal"]
    assert sorted(game.surprises) == ["Ben", "Cal"]
    assert sum(1 for v in game.surprises.values() if v is not None) == 1
    assert len(game.ask_options) == 3
    assert set(game.pitch_status.values()) == {"pending"}
    assert app.state.timers.is_scheduled(code, "ask")


@pytest.mark.asyncio
async def test_leave_during_pitch_closes_when_rest_ready(app, open_room):
    code = await open_room(names=("Ann", "Ben", "Cal", "Dee"))
    await handle_advance(app=app, room_code=code, msg=InAdvance(player_name="Ann"))
    game = await app.state.repo.get_game(code)
    await handle_select_ask(app=app, room_code=code, msg=InSelectAsk(ask=game.ask_options[0]))

    pitchers = list(game.pitch_status)
    for name in pitchers[:-1]:
        await handle_set_pitch_status(app=app, room_code=code, msg=InSetPitchStatus(player_name=name, status="ready"))

    _, to_room = await handle_leave(app=app, room_code=code, msg=InLeave(name=pitchers[-1]))
    assert "phase_changed" in _types(to_room)

    game = await app.state.repo.get_game(code)
    assert game.phase == "reveal"
    assert pitchers[-1] not in game.pitch_status


@pytest.mark.asyncio
async def test_set_mascot(app, open_room):
    code = await open_room()
    room = await app.state.repo.get_room(code)
    bens = room.players[1].mascot

    to_sender, _ = await handle_set_mascot(app=app, room_code=code, msg=InSetMascot(player_name="Ann", mascot=bens))
    assert to_sender[0].code == "MASCOT_TAKEN"

    to_sender, _ = await handle_set_mascot(app=app, room_code=code, msg=InSetMascot(player_name="Ann", mascot="penguin"))
    assert to_sender[0].code == "UNKNOWN_MASCOT"

    to_sender, to_room = await handle_set_mascot(app=app, room_code=code, msg=InSetMascot(player_name="Ann", mascot="llama"))
    assert to_sender[0].player["mascot"] == "llama"
    room = await app.state.repo.get_room(code)
    assert room.players[0].mascot == "llama"


@pytest.mark.asyncio
async def test_toggle_voice(app, open_room):
    code = await open_room()
    to_sender, to_room = await handle_toggle_voice(app=app, room_code=code, msg=InToggleVoice(enabled=True))
    assert to_room[0].robot_voice_enabled is True
    assert (await app.state.repo.get_room(code)).robot_voice_enabled is True


@pytest.mark.asyncio
async def test_snapshot_hides_other_surprises(app, open_room):
    code = await open_room()
    await handle_advance(app=app, room_code=code, msg=InAdvance(player_name="Ann"))
    game = await app.state.repo.get_game(code)
    holder = game.walrus_surprise_player
    other = next(n for n in game.surprises if n != holder)

    to_sender, _ = await handle_game_snapshot(app=app, room_code=code, msg=InGameSnapshot(viewer=other))
    snap = to_sender[0].game
    assert snap["surprises"][holder] is None
    assert snap["walrus_surprise_player"] is None
    assert isinstance(snap["viewed_pitch_ids"], list)

    to_sender, _ = await handle_game_snapshot(app=app, room_code=code, msg=InGameSnapshot(viewer=holder))
    assert to_sender[0].game["surprises"][holder] == game.surprises[holder]


@pytest.mark.asyncio
async def test_sweep_evicts_only_empty_idle_rooms(app, open_room):
    busy = await open_room(code="WLR-101")
    empty = await open_room(names=("Solo",), code="WLR-102")
    await handle_leave(app=app, room_code=empty, msg=InLeave(name="Solo"))

    repo = app.state.repo
    room = await repo.get_room(empty)
    evicted = await sweep_idle_rooms(repo=repo, timers=app.state.timers, idle_sec=600, ts=room.last_activity + 10)
    assert evicted == []

    evicted = await sweep_idle_rooms(repo=repo, timers=app.state.timers, idle_sec=600, ts=room.last_activity + 600)
    assert evicted == [empty]
    assert not await repo.room_exists(empty)
    assert await repo.room_exists(busy)
