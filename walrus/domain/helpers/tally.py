from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence


def validate_ranking(ranked: Sequence[str], expected: Sequence[str]) -> Optional[str]:
    """
    A ballot must rank every contestant pitch exactly once.
    Returns an error message or None.
    """
    if len(set(ranked)) != len(ranked):
        return "Ranking contains duplicates"
    if set(ranked) != set(expected):
        return "Ranking must include every final-round pitch exactly once"
    return None


def tally_rankings(rankings: Mapping[str, Sequence[str]], pitch_ids: Sequence[str]) -> Dict[str, int]:
    """
    Borda-style tally over all ballots.
    With N pitches, 1st place earns N points, 2nd N-1, ... last earns 1.
    Ballot entries for pitches no longer in play are ignored.
    Returns pitch_id -> points (every pitch present, even with 0).
    """
    n = len(pitch_ids)
    totals: Dict[str, int] = {pid: 0 for pid in pitch_ids}
    for ballot in rankings.values():
        live = [pid for pid in ballot if pid in totals]
        for pos, pid in enumerate(live):
            totals[pid] += n - pos
    return totals


def top_scorers(scores: Mapping[str, float], among: Optional[Sequence[str]] = None) -> List[str]:
    """All players sharing the highest score (co-winners on a tie)."""
    pool = {k: v for k, v in scores.items() if among is None or k in among}
    if not pool:
        return []
    best = max(pool.values())
    return [k for k, v in pool.items() if v == best]
