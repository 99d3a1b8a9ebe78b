# walrus/transport/protocols.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from walrus.domain.common.types import ErrorKind, Phase, PitchStatus, Verdict


# =========================
# Incoming (Client -> Server)
# =========================

class InBase(BaseModel):
    type: str


# ---- Room lifecycle ----

class InCreateRoom(InBase):
    type: Literal["create_room"] = "create_room"
    host_name: Optional[str] = Field(default=None, max_length=24)


class InJoin(InBase):
    type: Literal["join"] = "join"
    name: str = Field(min_length=1, max_length=24)


class InLeave(InBase):
    type: Literal["leave"] = "leave"
    name: str = Field(min_length=1, max_length=24)


class InSetMascot(InBase):
    type: Literal["set_mascot"] = "set_mascot"
    player_name: str = Field(min_length=1)
    mascot: str = Field(min_length=1)


class InToggleVoice(InBase):
    type: Literal["toggle_voice"] = "toggle_voice"
    enabled: bool


# ---- Queries ----

class InRoomSummary(InBase):
    type: Literal["room_summary"] = "room_summary"


class InGameSnapshot(InBase):
    type: Literal["game_snapshot"] = "game_snapshot"
    viewer: Optional[str] = None


class InListPitches(InBase):
    type: Literal["list_pitches"] = "list_pitches"


# ---- Game control ----

class InSetTimers(InBase):
    type: Literal["set_timers"] = "set_timers"
    player_name: str = Field(min_length=1)
    ask_timer_sec: Optional[int] = Field(default=None, ge=5, le=300)
    pitch_timer_sec: Optional[int] = Field(default=None, ge=30, le=900)


class InAdvance(InBase):
    type: Literal["advance"] = "advance"
    player_name: str = Field(min_length=1)


class InSelectAsk(InBase):
    type: Literal["select_ask"] = "select_ask"
    ask: str = Field(min_length=1)


class InSetPitchStatus(InBase):
    type: Literal["set_pitch_status"] = "set_pitch_status"
    player_name: str = Field(min_length=1)
    status: PitchStatus


class InSubmitPitch(InBase):
    type: Literal["submit_pitch"] = "submit_pitch"
    player_name: str = Field(min_length=1)
    title: str = Field(default="", max_length=120)
    summary: str = Field(default="", max_length=2000)
    voice: str = "Neon Announcer"
    used_must_haves: List[str] = Field(default_factory=list)
    ai_generated: bool = False
    sketch_data: Optional[Any] = None
    status: Optional[PitchStatus] = None


class InPitchViewed(InBase):
    type: Literal["pitch_viewed"] = "pitch_viewed"
    pitch_id: str = Field(min_length=1)
    viewer: str = Field(min_length=1)


class InChallenge(InBase):
    type: Literal["challenge"] = "challenge"
    accuser: str = Field(min_length=1)
    pitch_id: str = Field(min_length=1)


class InJudge(InBase):
    type: Literal["judge"] = "judge"
    player_name: str = Field(min_length=1)
    winner_pitch_id: str = Field(min_length=1)
    challenge_verdicts: Dict[str, Verdict] = Field(default_factory=dict)


class InAdvanceRound(InBase):
    type: Literal["advance_round"] = "advance_round"
    player_name: str = Field(min_length=1)


class InSubmitRanking(InBase):
    type: Literal["submit_ranking"] = "submit_ranking"
    player_name: str = Field(min_length=1)
    ranked_pitch_ids: List[str] = Field(min_length=1)


class InRestart(InBase):
    type: Literal["restart"] = "restart"
    player_name: str = Field(min_length=1)


class InGeneratePitch(InBase):
    type: Literal["generate_pitch"] = "generate_pitch"
    player_name: str = Field(min_length=1)


IncomingMessage = Union[
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
]


# =========================
# Outgoing (Server -> Client)
# =========================

class OutBase(BaseModel):
    type: str


class OutError(OutBase):
    type: Literal["error"] = "error"
    code: str
    kind: ErrorKind
    message: str


class OutRoomSnapshot(OutBase):
    type: Literal["room_snapshot"] = "room_snapshot"
    room: Dict[str, Any]
    players: List[Dict[str, Any]]
    capacity: int


class OutGameSnapshot(OutBase):
    type: Literal["game_snapshot"] = "game_snapshot"
    game: Dict[str, Any]


class OutPitchList(OutBase):
    type: Literal["pitch_list"] = "pitch_list"
    pitches: List[Dict[str, Any]]


class OutRoomCreated(OutBase):
    type: Literal["room_created"] = "room_created"
    room_code: str
    room: Dict[str, Any]


class OutPlayerJoined(OutBase):
    type: Literal["player_joined"] = "player_joined"
    name: str
    mascot: Optional[str] = None


class OutPlayerLeft(OutBase):
    type: Literal["player_left"] = "player_left"
    name: str
    new_host: Optional[str] = None


class OutPlayerUpdated(OutBase):
    type: Literal["player_updated"] = "player_updated"
    player: Dict[str, Any]


class OutRoomSettingsChanged(OutBase):
    type: Literal["room_settings_changed"] = "room_settings_changed"
    robot_voice_enabled: bool


class OutTimersChanged(OutBase):
    type: Literal["timers_changed"] = "timers_changed"
    ask_timer_sec: int
    pitch_timer_sec: int


class OutPhaseChanged(OutBase):
    type: Literal["phase_changed"] = "phase_changed"
    phase: Phase
    round_no: int
    ends_at: int = 0


class OutRoundStarted(OutBase):
    type: Literal["round_started"] = "round_started"
    round_no: int
    walrus: Optional[str]
    ask_options: List[str]


class OutAskSelected(OutBase):
    type: Literal["ask_selected"] = "ask_selected"
    ask: str
    auto: bool = False


class OutPitchSaved(OutBase):
    type: Literal["pitch_saved"] = "pitch_saved"
    pitch: Dict[str, Any]


class OutPitchStatusChanged(OutBase):
    type: Literal["pitch_status_changed"] = "pitch_status_changed"
    player: str
    status: PitchStatus


class OutPitchViewed(OutBase):
    type: Literal["pitch_viewed"] = "pitch_viewed"
    pitch_id: str
    viewer: str


class OutChallengeResolved(OutBase):
    type: Literal["challenge_resolved"] = "challenge_resolved"
    challenge: Dict[str, Any]


class OutRoundJudged(OutBase):
    type: Literal["round_judged"] = "round_judged"
    round_no: int
    winner: Optional[Dict[str, Any]] = None
    player_scores: Dict[str, float]
    disqualified: List[str]
    final_round_pending: bool = False


class OutFinalRoundStarted(OutBase):
    type: Literal["final_round_started"] = "final_round_started"
    contestants: List[str]
    judges: List[str]
    ask: str


class OutRankingReceived(OutBase):
    type: Literal["ranking_received"] = "ranking_received"
    judge: str
    submitted: int
    needed: int


class OutGameOver(OutBase):
    type: Literal["game_over"] = "game_over"
    winners: List[str]
    tally: Dict[str, int]
    player_scores: Dict[str, float]


class OutGameRestarted(OutBase):
    type: Literal["game_restarted"] = "game_restarted"


class OutPitchGenerated(OutBase):
    type: Literal["pitch_generated"] = "pitch_generated"
    text: str
    cost: float
    balance: float


class OutPitchDeclined(OutBase):
    type: Literal["pitch_declined"] = "pitch_declined"
    reason: str


OutgoingEvent = Union[
    OutError,
    OutRoomSnapshot,
    OutGameSnapshot,
    OutPitchList,
    OutRoomCreated,
    OutPlayerJoined,
    OutPlayerLeft,
    OutPlayerUpdated,
    OutRoomSettingsChanged,
    OutTimersChanged,
    OutPhaseChanged,
    OutRoundStarted,
    OutAskSelected,
    OutPitchSaved,
    OutPitchStatusChanged,
    OutPitchViewed,
    OutChallengeResolved,
    OutRoundJudged,
    OutFinalRoundStarted,
    OutRankingReceived,
    OutGameOver,
    OutGameRestarted,
    OutPitchGenerated,
    OutPitchDeclined,
]


# =========================
# Parser helpers
# =========================

_INCOMING_BY_TYPE = {
    "create_room": InCreateRoom,
    "join": InJoin,
    "leave": InLeave,
    "set_mascot": InSetMascot,
    "toggle_voice": InToggleVoice,
    "room_summary": InRoomSummary,
    "game_snapshot": InGameSnapshot,
    "list_pitches": InListPitches,
    "set_timers": InSetTimers,
    "advance": InAdvance,
    "select_ask": InSelectAsk,
    "set_pitch_status": InSetPitchStatus,
    "submit_pitch": InSubmitPitch,
    "pitch_viewed": InPitchViewed,
    "challenge": InChallenge,
    "judge": InJudge,
    "advance_round": InAdvanceRound,
    "submit_ranking": InSubmitRanking,
    "restart": InRestart,
    "generate_pitch": InGeneratePitch,
}


def parse_incoming(payload: Dict[str, Any]) -> IncomingMessage:
    """
    Convert raw dict -> validated message model.
    Raises ValueError for an unknown type, ValidationError for bad fields.
    """
    if not isinstance(payload, dict):
        raise ValueError("Message must be an object")

    t = payload.get("type")
    if not isinstance(t, str):
        raise ValueError("Missing/invalid type")

    cls = _INCOMING_BY_TYPE.get(t)
    if cls is None:
        raise ValueError(f"Unknown message type: {t}")

    return cls.model_validate(payload)


def dump_events(events: List[OutgoingEvent]) -> List[Dict[str, Any]]:
    """
    Convert pydantic events -> JSON dicts.
    """
    return [e.model_dump(mode="json") for e in events]
