from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/rooms")
async def list_rooms(request: Request):
    """
    List all live rooms (debug/admin).
    """
    repo = request.app.state.repo

    rooms = []
    for code in await repo.list_room_codes():
        room = await repo.get_room(code)
        game = await repo.get_game(code)
        if room is None or game is None:
            continue
        rooms.append(
            {
                "room_code": code,
                "status": room.status,
                "cap": room.cap,
                "round_no": game.round_no,
                "players": len(room.players),
                "last_activity": room.last_activity,
                "created_at": room.created_at,
            }
        )

    return {"rooms": rooms}


@router.post("/rooms/{room_code}/close")
async def close_room(room_code: str, request: Request):
    """
    Force close a room (debug/admin). Cancels its timers and drops all state.
    """
    repo = request.app.state.repo

    if not await repo.room_exists(room_code):
        raise HTTPException(status_code=404, detail="Room not found")

    request.app.state.timers.cancel_room(room_code)
    await repo.delete_room(room_code)
    logger.info("Room %s closed by admin", room_code)

    return {"ok": True, "room_code": room_code}
