# walrus/store/models.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Set
from pydantic import BaseModel, Field

from walrus.domain.common.types import Phase, PitchStatus, Verdict


class PlayerStore(BaseModel):
    name: str
    is_host: bool = False
    mascot: Optional[str] = None
    joined_at: int


class RoomStore(BaseModel):
    code: str
    status: Phase = "lobby"
    players: List[PlayerStore] = Field(default_factory=list)  # join order
    cap: int = 8
    created_at: int
    last_activity: int
    robot_voice_enabled: bool = False


class Pitch(BaseModel):
    id: str
    player: str
    title: str = ""
    summary: str = ""
    voice: str = "Neon Announcer"
    used_must_haves: List[str] = Field(default_factory=list)
    ai_generated: bool = False
    sketch_data: Optional[Any] = None
    round_no: int = 0
    submitted_at: int = 0
    is_valid: bool = False
    is_disqualified: bool = True


class Challenge(BaseModel):
    accuser: str
    pitch_id: str
    target: str  # pitcher
    verdict: Verdict = "pending"
    correct: Optional[bool] = None
    disqualified: Optional[str] = None  # who lost the round over it
    created_at: int


class RoundWinner(BaseModel):
    round_no: int
    player: str
    pitch_id: str
    title: str = ""
    walrus_surprise_winner: bool = False
    base_points: float
    bonus_points: float
    points_awarded: float
    created_at: int


class GameStore(BaseModel):
    """
    Live game state for one room.
    Sets are internal only; snapshots turn them into sorted lists.
    """
    phase: Phase = "lobby"
    round_no: int = 0

    walrus: Optional[str] = None
    walrus_queue: List[str] = Field(default_factory=list)
    walrus_index: int = -1

    ask_timer_sec: int = 30
    pitch_timer_sec: int = 120
    ask_ends_at: int = 0
    pitch_ends_at: int = 0

    ask_options: List[str] = Field(default_factory=list)
    selected_ask: Optional[str] = None
    used_asks: List[str] = Field(default_factory=list)

    must_haves: Dict[str, List[str]] = Field(default_factory=dict)
    surprises: Dict[str, Optional[str]] = Field(default_factory=dict)
    pitch_status: Dict[str, PitchStatus] = Field(default_factory=dict)
    walrus_surprise_player: Optional[str] = None

    challenges: List[Challenge] = Field(default_factory=list)
    challenge_reveal: Optional[Challenge] = None
    last_round_winner: Optional[RoundWinner] = None
    viewed_pitch_ids: Set[str] = Field(default_factory=set)
    disqualified: Set[str] = Field(default_factory=set)
    player_scores: Dict[str, float] = Field(default_factory=dict)

    # Final round
    final_round_pending: bool = False
    final_contestants: List[str] = Field(default_factory=list)
    final_judges: List[str] = Field(default_factory=list)
    final_rankings: Dict[str, List[str]] = Field(default_factory=dict)
    final_viewed: Dict[str, Set[str]] = Field(default_factory=dict)
    final_tally: Dict[str, int] = Field(default_factory=dict)
    game_winners: List[str] = Field(default_factory=list)
