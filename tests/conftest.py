import random
from types import SimpleNamespace

import pytest

from walrus.domain.helpers.decks import MASCOTS
from walrus.settings import Settings
from walrus.store.memory_repo import MemoryRepo
from walrus.store.models import GameStore, PlayerStore, RoomStore


class FakeTimers:
    """Records timers instead of sleeping; tests fire them by hand."""
    def __init__(self):
        self.scheduled = {}
        self.cancelled = []

    def schedule(self, room_code, kind, delay_sec, callback):
        self.scheduled[(room_code, kind)] = (delay_sec, callback)

    def cancel(self, room_code, kind):
        self.scheduled.pop((room_code, kind), None)
        self.cancelled.append((room_code, kind))

    def cancel_room(self, room_code):
        for key in [k for k in self.scheduled if k[0] == room_code]:
            self.cancel(*key)

    def cancel_all(self):
        self.scheduled.clear()

    def is_scheduled(self, room_code, kind):
        return (room_code, kind) in self.scheduled

    async def fire(self, room_code, kind):
        _, callback = self.scheduled.pop((room_code, kind))
        await callback()


class FakeApp:
    def __init__(self, settings=None, rng=None):
        self.state = SimpleNamespace(
            repo=MemoryRepo(),
            timers=FakeTimers(),
            settings=settings or Settings(),
            rng=rng or random.Random(7),
            generator=None,
        )


class FirstSeatRandom(random.Random):
    """Deterministic first Walrus: the rotation always starts at seat 0."""
    def randrange(self, *args, **kwargs):
        return 0


@pytest.fixture
def app():
    return FakeApp()


@pytest.fixture
def open_room(app):
    async def _open(names=("Ann", "Ben", "Cal"), code="WLR-100", scores=None):
        players = [
            PlayerStore(name=n, is_host=(i == 0), mascot=MASCOTS[i], joined_at=i)
            for i, n in enumerate(names)
        ]
        room = RoomStore(code=code, players=players, created_at=0, last_activity=0)
        game = GameStore(player_scores={n: 0.0 for n in names})
        if scores:
            game.player_scores.update(scores)
        await app.state.repo.create_room(room, game)
        return code
    return _open


@pytest.fixture
def seated_app():
    """An app whose first Walrus is always the first player to join."""
    return FakeApp(rng=FirstSeatRandom(5))
