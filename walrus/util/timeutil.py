from __future__ import annotations

import time


def now_ts() -> int:
    """Epoch seconds."""
    return int(time.time())
