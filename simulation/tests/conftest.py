"""Shared fixtures for the simulation tests."""

from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest

from models.coin import Coin, PricePoint
from models.state import GameState
from simulation.engine import new_game_state

START = datetime(2025, 1, 1, tzinfo=timezone.utc)


class ScriptedRandom(random.Random):
    """``random.Random`` whose ``random()`` replays a fixed list of draws.

    Integer helpers (``randrange``, ``choice``, ``randint``) keep using the
    seeded bit generator, so they do not consume scripted values. Running
    out of scripted values fails the test, which also catches code paths
    that draw when they should not.
    """

    def __init__(self, values=(), seed: int = 0) -> None:
        super().__init__(seed)
        self.values = list(values)

    def random(self) -> float:
        if not self.values:
            raise AssertionError("ScriptedRandom ran out of scripted draws.")
        return self.values.pop(0)

    def getrandbits(self, k: int) -> int:
        return super().getrandbits(k)


@pytest.fixture
def rng() -> ScriptedRandom:
    return ScriptedRandom()


@pytest.fixture
def state() -> GameState:
    """A fresh normal-mode game: $10,000 cash, BTC at $60,000, six empty rigs."""
    return new_game_state(now=START)


@pytest.fixture
def sandbox_state() -> GameState:
    return new_game_state(sandbox=True, now=START)


def make_coin(price: float = 100.0, coin_id: str = "abc", stable: bool = False) -> Coin:
    return Coin(
        id=coin_id,
        name=coin_id.title(),
        symbol=coin_id.upper(),
        price=price,
        history=[PricePoint(date=START.isoformat(), price=price)],
        stable=stable,
    )


@pytest.fixture
def coin_factory():
    return make_coin
