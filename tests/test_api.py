import pytest
from fastapi.testclient import TestClient

from walrus.main import create_app
from walrus.settings import Settings


@pytest.fixture
def client():
    app = create_app(Settings(LOG_LEVEL="WARNING"))
    with TestClient(app) as c:
        yield c


def _room(client, host="Ann", guests=("Ben", "Cal")):
    r = client.post("/api/rooms", json={"host_name": host})
    assert r.status_code == 200
    code = r.json()["events"][0]["room_code"]
    for name in guests:
        assert client.post("/api/rooms/join", json={"code": code, "name": name}).status_code == 200
    return code


def test_health_and_rules(client):
    assert client.get("/health").json()["ok"] is True

    body = client.get("/api/rules").json()
    assert body["ok"] is True
    assert len(body["rules"]) >= 5
    assert "walrus" in body["mascots"]


def test_create_join_and_summary(client):
    code = _room(client)

    r = client.get(f"/api/room/{code}")
    assert r.status_code == 200
    snap = r.json()["events"][0]
    assert snap["type"] == "room_snapshot"
    assert [p["name"] for p in snap["players"]] == ["Ann", "Ben", "Cal"]


def test_error_status_by_kind(client):
    code = _room(client)

    r = client.post("/api/rooms/join", json={"code": code, "name": "ben"})
    assert r.status_code == 409
    assert r.json() == {
        "ok": False,
        "error": {"code": "NAME_TAKEN", "kind": "conflict", "message": "Name already taken"},
    }

    r = client.post("/api/rooms/join", json={"code": "WLR-000", "name": "Dee"})
    assert r.status_code == 404

    r = client.post(f"/api/room/{code}/advance", json={"player_name": "Ben"})
    assert r.status_code == 403

    r = client.post(f"/api/room/{code}/advance", json={})
    assert r.status_code == 422
    assert r.json()["error"]["code"] == "BAD_MESSAGE"

    r = client.post(f"/api/room/{code}/advance", content=b"[1, 2]", headers={"content-type": "application/json"})
    assert r.status_code == 422

    r = client.post(f"/api/room/{code}/dance", json={})
    assert r.status_code == 404


def test_full_room_is_429(client):
    code = _room(client, guests=[f"P{i}" for i in range(7)])
    r = client.post("/api/rooms/join", json={"code": code, "name": "Late"})
    assert r.status_code == 429
    assert r.json()["error"]["kind"] == "resource_exhausted"


def test_round_events_land_in_feed(client):
    code = _room(client)

    r = client.post(f"/api/room/{code}/advance", json={"player_name": "Ann"})
    assert r.status_code == 200
    assert [e["type"] for e in r.json()["events"]] == ["round_started", "phase_changed"]

    feed = client.get(f"/api/room/{code}/events").json()["events"]
    assert [e["type"] for e in feed] == ["player_joined", "player_joined", "round_started", "phase_changed"]
    assert [e["seq"] for e in feed] == [1, 2, 3, 4]

    newer = client.get(f"/api/room/{code}/events", params={"since": 2}).json()["events"]
    assert [e["seq"] for e in newer] == [3, 4]

    game = client.get(f"/api/room/{code}/game").json()["events"][0]["game"]
    assert game["phase"] == "deal"
    ask = game["ask_options"][0]

    r = client.post(f"/api/room/{code}/select-ask", json={"ask": "nope"})
    assert r.status_code == 422
    r = client.post(f"/api/room/{code}/select-ask", json={"ask": ask})
    assert r.status_code == 200

    game = client.get(f"/api/room/{code}/game").json()["events"][0]["game"]
    assert game["phase"] == "pitch"
    assert game["selected_ask"] == ask


def test_events_for_unknown_room(client):
    assert client.get("/api/room/WLR-000/events").status_code == 404


def test_admin_list_and_close(client):
    code = _room(client)

    rooms = client.get("/admin/rooms").json()["rooms"]
    assert [r["room_code"] for r in rooms] == [code]
    assert rooms[0]["players"] == 3

    assert client.post(f"/admin/rooms/{code}/close").json() == {"ok": True, "room_code": code}
    assert client.get(f"/api/room/{code}").status_code == 404
    assert client.post(f"/admin/rooms/{code}/close").status_code == 404


def test_room_routes_accept_lowercase_code(client):
    code = _room(client)
    lower = code.lower()

    assert client.get(f"/api/room/{lower}").json()["events"][0]["room"]["code"] == code
    assert client.get(f"/api/room/{lower}/game").status_code == 200
    assert client.get(f"/api/room/{lower}/events").status_code == 200

    r = client.post(f"/api/room/{lower}/advance", json={"player_name": "Ann"})
    assert r.status_code == 200
    assert client.get(f"/api/room/{code}/game").json()["events"][0]["game"]["phase"] == "deal"
