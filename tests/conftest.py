import random
from datetime import datetime

import pytest

from bracketforge.controllers import TournamentEngine
from bracketforge.store import InMemoryStore

FIXED_NOW = datetime(2025, 1, 15, 12, 0, 0)


def fixed_clock():
    return FIXED_NOW


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def events():
    return []


@pytest.fixture
def engine(store, events):
    return TournamentEngine(
        store=store,
        rng=random.Random(7),
        clock=fixed_clock,
        event_sink=lambda name, payload: events.append((name, payload)),
    )


@pytest.fixture
def register(engine):
    """Register players from (name, rating) pairs and return their ids."""

    def _register(*entries):
        return [engine.register_player(name, rating).id for name, rating in entries]

    return _register
