# walrus/domain/rules.py
from __future__ import annotations

from typing import List, Mapping, Optional, Sequence, Tuple

from walrus.domain.common.types import Phase, Verdict
from walrus.store.models import Pitch

# Round constants
ASK_OPTIONS = 3
MUST_HAVES_PER_PLAYER = 4
FINAL_MUST_HAVES_PER_PLAYER = 3
MIN_MUST_HAVES = 1
FINAL_MIN_MUST_HAVES = 2


def min_must_haves(phase: Phase) -> int:
    """Minimum must-haves a pitch has to use in the given phase."""
    return FINAL_MIN_MUST_HAVES if phase == "final-round" else MIN_MUST_HAVES


def pitch_is_valid(title: str, summary: str, used_must_haves: Sequence[str], min_required: int) -> bool:
    return bool((title or "").strip()) and bool((summary or "").strip()) and len(used_must_haves) >= min_required


def round_award(
    *,
    used_count: int,
    surprise_winner: bool,
    base_points: float,
    surprise_multiplier: float,
    must_have_bonus: float,
) -> Tuple[float, float, float]:
    """
    Points for a round win.
    The surprise multiplier applies to the base only; the must-have bonus
    (one step per must-have beyond the first) is stacked on top.
    Returns (base, bonus, total).
    """
    base = base_points * (surprise_multiplier if surprise_winner else 1)
    bonus = max(0, used_count - 1) * must_have_bonus
    return base, bonus, base + bonus


def resolve_challenge(pitch: Pitch, accuser: str) -> Tuple[Verdict, bool, str]:
    """
    An AI accusation against a pitch.
    AI pitch -> upheld and correct, the pitcher is disqualified.
    Human pitch -> rejected and incorrect, the accuser is disqualified.
    Returns (verdict, correct, disqualified_player).
    """
    if pitch.ai_generated:
        return "upheld", True, pitch.player
    return "rejected", False, accuser


def apply_penalty(score: float, penalty: float) -> float:
    return max(0.0, score - penalty)


def threshold_reached(scores: Mapping[str, float], threshold: float) -> bool:
    return any(v >= threshold for v in scores.values())


def pick_finalists(scores: Mapping[str, float]) -> List[str]:
    """
    Final-round contestants: everyone tied for first, plus everyone tied
    for second when a single player leads.
    """
    if not scores:
        return []
    ordered = sorted(set(scores.values()), reverse=True)
    top = [name for name, v in scores.items() if v == ordered[0]]
    if len(top) == 1 and len(ordered) > 1:
        top.extend(name for name, v in scores.items() if v == ordered[1])
    return top


def winner_check(pitch: Optional[Pitch], disqualified: Sequence[str]) -> Optional[str]:
    """Why a pitch cannot win, or None if it can."""
    if pitch is None:
        return "Pitch not found"
    if not pitch.is_valid or pitch.is_disqualified:
        return "Pitch is invalid or disqualified"
    if pitch.player in disqualified:
        return "Pitcher is disqualified this round"
    return None
