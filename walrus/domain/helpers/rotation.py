from __future__ import annotations

import random
from typing import List, Sequence, Tuple

from walrus.domain.common.validation import name_key


def sync_queue(queue: Sequence[str], live_names: Sequence[str]) -> List[str]:
    """
    Resync the rotation queue to the live roster:
      - departed names are dropped
      - newcomers are appended in join order
    """
    live = {name_key(n): n for n in live_names}
    synced = [live[name_key(q)] for q in queue if name_key(q) in live]
    known = {name_key(n) for n in synced}
    synced.extend(n for n in live_names if name_key(n) not in known)
    return synced


def rotate_walrus(
    *,
    queue: Sequence[str],
    index: int,
    current: str | None,
    live_names: Sequence[str],
    rng: random.Random,
) -> Tuple[List[str], int, str]:
    """
    Pick the next Walrus.
    First round (index < 0) starts at a uniformly random position; later rounds
    move one step past the current Walrus, wrapping around.
    Returns (queue, index, walrus).
    """
    synced = sync_queue(queue, live_names)
    if not synced:
        return [], -1, ""

    if index < 0 or not queue:
        idx = rng.randrange(len(synced))
        return synced, idx, synced[idx]

    keys = [name_key(n) for n in synced]
    if current and name_key(current) in keys:
        idx = (keys.index(name_key(current)) + 1) % len(synced)
    else:
        # current Walrus left: whoever slid into its slot goes next
        idx = index % len(synced)
    return synced, idx, synced[idx]
