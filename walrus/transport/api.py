# walrus/transport/api.py
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from walrus.domain.common.events import room_not_found
from walrus.domain.helpers.decks import MASCOTS, RULES, VOICES
from walrus.transport.dispatcher import dispatch_message

router = APIRouter(prefix="/api", tags=["game"])

STATUS_BY_KIND = {
    "not_found": 404,
    "validation": 422,
    "authorization": 403,
    "conflict": 409,
    "resource_exhausted": 429,
}

# POST /api/room/{code}/<action> -> message type
ROOM_ACTIONS = {
    "advance": "advance",
    "select-ask": "select_ask",
    "pitch-status": "set_pitch_status",
    "pitch": "submit_pitch",
    "pitch-viewed": "pitch_viewed",
    "challenge": "challenge",
    "judge": "judge",
    "advance-round": "advance_round",
    "tiebreaker-ranking": "submit_ranking",
    "restart": "restart",
    "mascot": "set_mascot",
    "toggle-voice": "toggle_voice",
    "timers": "set_timers",
    "generate-pitch": "generate_pitch",
}


def _norm_code(code: Any) -> str:
    return str(code or "").strip().upper()


def _error_response(error: Dict[str, Any]) -> JSONResponse:
    body = {k: error[k] for k in ("code", "kind", "message")}
    return JSONResponse(status_code=STATUS_BY_KIND.get(error["kind"], 400), content={"ok": False, "error": body})


def _bad_message(message: str) -> JSONResponse:
    return _error_response({"code": "BAD_MESSAGE", "kind": "validation", "message": message})


async def _read_body(request: Request) -> Optional[Dict[str, Any]]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


async def _run(request: Request, room_code: str, payload: Dict[str, Any]) -> JSONResponse:
    """
    Dispatch one message and publish its room events to the feed.
    The caller sees its own events, or the room's when it has none.
    """
    app = request.app
    room_code = _norm_code(room_code)
    to_sender, to_room = await dispatch_message(app=app, room_code=room_code, raw=payload)

    errors = [e for e in to_sender if e.get("type") == "error"]
    if errors:
        return _error_response(errors[0])

    if to_room:
        await app.state.repo.append_events(room_code, to_room)

    events: List[Dict[str, Any]] = to_sender or to_room
    return JSONResponse(content={"ok": True, "events": events})


@router.get("/rules")
async def rules():
    return {"ok": True, "rules": list(RULES), "mascots": list(MASCOTS), "voices": list(VOICES)}


@router.post("/rooms")
async def create_room(request: Request):
    body = await _read_body(request)
    if body is None:
        return _bad_message("Body must be a JSON object")
    return await _run(request, "", {**body, "type": "create_room"})


@router.post("/rooms/join")
async def join_room(request: Request):
    body = await _read_body(request)
    if body is None:
        return _bad_message("Body must be a JSON object")
    code = _norm_code(body.pop("code", None))
    if not code:
        return _bad_message("Room code is required")
    return await _run(request, code, {**body, "type": "join"})


@router.post("/rooms/leave")
async def leave_room(request: Request):
    body = await _read_body(request)
    if body is None:
        return _bad_message("Body must be a JSON object")
    code = _norm_code(body.pop("code", None))
    if not code:
        return _bad_message("Room code is required")
    return await _run(request, code, {**body, "type": "leave"})


@router.get("/room/{room_code}")
async def room_summary(room_code: str, request: Request):
    return await _run(request, room_code, {"type": "room_summary"})


@router.get("/room/{room_code}/game")
async def game_snapshot(room_code: str, request: Request, viewer: Optional[str] = None):
    return await _run(request, room_code, {"type": "game_snapshot", "viewer": viewer})


@router.get("/room/{room_code}/pitches")
async def list_pitches(room_code: str, request: Request):
    return await _run(request, room_code, {"type": "list_pitches"})


@router.get("/room/{room_code}/events")
async def room_events(room_code: str, request: Request, since: int = 0):
    repo = request.app.state.repo
    room_code = _norm_code(room_code)
    if not await repo.room_exists(room_code):
        return _error_response(room_not_found(room_code).model_dump(mode="json"))
    return {"ok": True, "events": await repo.get_events(room_code, since)}


@router.post("/room/{room_code}/{action}")
async def room_action(room_code: str, action: str, request: Request):
    msg_type = ROOM_ACTIONS.get(action)
    if msg_type is None:
        return _error_response({"code": "UNKNOWN_ACTION", "kind": "not_found", "message": f"Unknown action: {action}"})
    body = await _read_body(request)
    if body is None:
        return _bad_message("Body must be a JSON object")
    return await _run(request, room_code, {**body, "type": msg_type})
