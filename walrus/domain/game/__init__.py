from __future__ import annotations

from .handlers_phase import (
    handle_advance,
    handle_select_ask,
    handle_ask_timeout,
    handle_pitch_timeout,
    handle_restart,
    handle_set_timers,
)
from .handlers_pitch import handle_submit_pitch, handle_set_pitch_status, handle_pitch_viewed
from .handlers_judge import handle_challenge, handle_judge
from .handlers_round import handle_advance_round
from .handlers_final import handle_submit_ranking
from .handlers_generate import handle_generate_pitch

__all__ = [
    "handle_advance",
    "handle_select_ask",
    "handle_ask_timeout",
    "handle_pitch_timeout",
    "handle_restart",
    "handle_set_timers",
    "handle_submit_pitch",
    "handle_set_pitch_status",
    "handle_pitch_viewed",
    "handle_challenge",
    "handle_judge",
    "handle_advance_round",
    "handle_submit_ranking",
    "handle_generate_pitch",
]
