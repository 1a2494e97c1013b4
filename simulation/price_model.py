"""Stochastic price evolution for coins.

Each call to ``PriceModel.advance`` draws one uniform value and picks a
movement regime from a cumulative probability table:

    [0.00, 0.40)  micro-noise      +/-0.5%
    [0.40, 0.70)  moderate move    +/-3%
    [0.70, 0.90)  large move       +/-10%
    [0.90, 0.95)  crash window     60% chance of halving
    [0.95, 1.00)  rally window     60% chance of +50%

The stablecoin ignores the table and is redrawn around 1.0 every tick.
"""

from __future__ import annotations

import random

from models.coin import Coin, PricePoint
from models.rules import HISTORY_LIMIT, PRICE_FLOOR

# (upper bound of the cumulative draw, symmetric half-width of the move)
_NOISE_REGIMES: list[tuple[float, float]] = [
    (0.40, 0.005),
    (0.70, 0.03),
    (0.90, 0.10),
]
_CRASH_UPPER = 0.95
_SHOCK_CHANCE = 0.6
_CRASH_MULTIPLIER = 0.5
_RALLY_MULTIPLIER = 1.5

_STABLE_HALF_WIDTH = 0.0025


def clamp_price(coin: Coin, price: float) -> float:
    """Apply the price floor to every coin except the stablecoin."""
    if not coin.stable and price < PRICE_FLOOR:
        return PRICE_FLOOR
    return price


def record_price(coin: Coin, price: float, date: str) -> Coin:
    """Return *coin* repriced to *price* with a new history sample at *date*.

    History keeps only the most recent ``HISTORY_LIMIT`` samples.
    """
    history = [*coin.history, PricePoint(date=date, price=price)][-HISTORY_LIMIT:]
    return coin.model_copy(update={"price": price, "history": history})


class PriceModel:
    """Draws the next price of a coin from the regime table.

    The random source is injected so tests and replays can seed it.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def next_price(self, coin: Coin) -> float:
        """Draw the next quoted price for *coin* (floor applied)."""
        rng = self._rng
        if coin.stable:
            return 1 + (rng.random() - 0.5) * 2 * _STABLE_HALF_WIDTH

        price = coin.price
        draw = rng.random()
        for upper, half_width in _NOISE_REGIMES:
            if draw < upper:
                price *= 1 + (rng.random() - 0.5) * 2 * half_width
                break
        else:
            if rng.random() < _SHOCK_CHANCE:
                price *= _CRASH_MULTIPLIER if draw < _CRASH_UPPER else _RALLY_MULTIPLIER

        return clamp_price(coin, price)

    def advance(self, coin: Coin, current_date: str) -> Coin:
        """Return *coin* moved one tick forward and sampled at *current_date*."""
        return record_price(coin, self.next_price(coin), current_date)
