from __future__ import annotations

from .decks import deal_cards, draw_asks, free_mascots, pick_surprise
from .rotation import rotate_walrus, sync_queue
from .tally import tally_rankings, top_scorers, validate_ranking

__all__ = [
    "deal_cards",
    "draw_asks",
    "free_mascots",
    "pick_surprise",
    "rotate_walrus",
    "sync_queue",
    "tally_rankings",
    "top_scorers",
    "validate_ranking",
]
