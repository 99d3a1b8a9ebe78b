# walrus/domain/common/types.py
from __future__ import annotations

from typing import Literal

Phase = Literal["lobby", "deal", "pitch", "reveal", "vote", "results", "final-round"]
PitchStatus = Literal["pending", "drafting", "ready"]
Verdict = Literal["upheld", "rejected", "pending"]
ErrorKind = Literal["not_found", "validation", "authorization", "conflict", "resource_exhausted"]
TimerKind = Literal["ask", "pitch"]
