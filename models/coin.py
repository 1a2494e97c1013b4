"""Coin and price history models."""

from pydantic import BaseModel, Field


class PricePoint(BaseModel):
    """One (date, price) sample in a coin's rolling history."""

    date: str  # ISO 8601 game date
    price: float


class Coin(BaseModel):
    """A tradeable coin with its quoted price and bounded price history.

    ``history`` is chronologically ordered and never longer than
    ``rules.HISTORY_LIMIT``; the price model and every price-moving action
    append through ``simulation.price_model.record_price`` to keep it so.
    """

    id: str
    name: str
    symbol: str
    price: float = Field(gt=0)
    history: list[PricePoint] = []
    stable: bool = False  # Stablecoin pinned near 1.0, exempt from the regime table
