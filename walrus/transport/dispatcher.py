# walrus/transport/dispatcher.py
from __future__ import annotations

from typing import Any, Dict, List, Tuple

from pydantic import ValidationError

from walrus.transport.protocols import (
    parse_incoming,
    dump_events,
    OutError,
    InCreateRoom,
    InJoin,
    InLeave,
    InSetMascot,
    InToggleVoice,
    InRoomSummary,
    InGameSnapshot,
    InListPitches,
    InSetTimers,
    InAdvance,
    InSelectAsk,
    InSetPitchStatus,
    InSubmitPitch,
    InPitchViewed,
    InChallenge,
    InJudge,
    InAdvanceRound,
    InSubmitRanking,
    InRestart,
    InGeneratePitch,
)
from walrus.domain.lifecycle.handlers import (
    handle_create_room,
    handle_join,
    handle_leave,
    handle_set_mascot,
    handle_toggle_voice,
    handle_room_summary,
    handle_game_snapshot,
    handle_list_pitches,
)
from walrus.domain.game import (
    handle_advance,
    handle_select_ask,
    handle_restart,
    handle_set_timers,
    handle_submit_pitch,
    handle_set_pitch_status,
    handle_pitch_viewed,
    handle_challenge,
    handle_judge,
    handle_advance_round,
    handle_submit_ranking,
    handle_generate_pitch,
)

DispatchResult = Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]
# (to_sender_events, to_room_events), each event is JSON dict

_HANDLERS = (
    (InCreateRoom, handle_create_room),
    (InJoin, handle_join),
    (InLeave, handle_leave),
    (InSetMascot, handle_set_mascot),
    (InToggleVoice, handle_toggle_voice),
    (InRoomSummary, handle_room_summary),
    (InGameSnapshot, handle_game_snapshot),
    (InListPitches, handle_list_pitches),
    # host controls
    (InSetTimers, handle_set_timers),
    (InAdvance, handle_advance),
    (InAdvanceRound, handle_advance_round),
    (InRestart, handle_restart),
    # round play
    (InSelectAsk, handle_select_ask),
    (InSubmitPitch, handle_submit_pitch),
    (InSetPitchStatus, handle_set_pitch_status),
    (InGeneratePitch, handle_generate_pitch),
    (InPitchViewed, handle_pitch_viewed),
    (InChallenge, handle_challenge),
    (InJudge, handle_judge),
    # final round
    (InSubmitRanking, handle_submit_ranking),
)


async def dispatch_message(
    *,
    app,
    room_code: str,
    raw: Dict[str, Any],
) -> DispatchResult:
    """
    Transport layer calls this.
    - Parses + validates raw JSON
    - Routes to the correct domain handler
    - Returns (to_sender, to_room) events as JSON dicts

    NOTE: This file contains NO storage access and NO game rules.
    """
    try:
        msg = parse_incoming(raw)
    except (ValidationError, ValueError) as e:
        err = OutError(code="BAD_MESSAGE", kind="validation", message=str(e))
        return dump_events([err]), []

    for msg_type, handler in _HANDLERS:
        if isinstance(msg, msg_type):
            to_sender, to_room = await handler(app=app, room_code=room_code, msg=msg)
            return dump_events(to_sender), dump_events(to_room)

    err = OutError(code="UNKNOWN_TYPE", kind="validation", message=f"Unhandled message type: {msg.type}")
    return dump_events([err]), []
