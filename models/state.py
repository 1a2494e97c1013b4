"""Aggregate game state model.

``GameState`` is the single aggregate root of a game session. Transition
functions in ``simulation/`` never mutate a ``GameState`` in place; they
return a new one built with ``model_copy``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from models.coin import Coin
from models.hardware import MiningRig


class NewsItem(BaseModel):
    """Latest headline shown to the player."""

    headline: str
    content: str
    is_ai_news: bool = False


class GameState(BaseModel):
    """Full snapshot of one game: market, portfolio, rigs and status line."""

    coins: list[Coin]
    selected_coin_id: str
    cash: float
    holdings: dict[str, float] = {}
    message: str = ""
    sandbox_mode: bool = False
    initial_cash: float
    news: NewsItem
    time_step: int = Field(default=1, ge=0)  # Tick counter
    game_date: str  # ISO 8601
    time_speed: int = Field(default=1, ge=0)  # In-game days per tick; 0 = paused
    pcs: list[MiningRig] = []
    # Advice request in flight; never persisted.
    is_generating_advice: bool = Field(default=False, exclude=True)

    @model_validator(mode="after")
    def _check_selected_coin(self) -> GameState:
        if self.coin(self.selected_coin_id) is None:
            raise ValueError(
                f"selected_coin_id '{self.selected_coin_id}' is not in the coin catalog."
            )
        return self

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def coin(self, coin_id: str | None) -> Coin | None:
        """Return the coin with *coin_id*, or ``None`` if absent."""
        for coin in self.coins:
            if coin.id == coin_id:
                return coin
        return None

    @property
    def selected_coin(self) -> Coin:
        coin = self.coin(self.selected_coin_id)
        if coin is None:
            raise ValueError(f"Selected coin '{self.selected_coin_id}' is not in the catalog.")
        return coin

    def holding(self, coin_id: str) -> float:
        """Owned quantity of *coin_id*; a missing entry counts as zero."""
        return self.holdings.get(coin_id, 0.0)

    def rig(self, pc_id: int) -> MiningRig | None:
        for pc in self.pcs:
            if pc.id == pc_id:
                return pc
        return None

    @property
    def net_worth(self) -> float:
        """Cash plus the market value of all holdings at quoted prices."""
        value = self.cash
        for coin_id, amount in self.holdings.items():
            coin = self.coin(coin_id)
            if coin is not None and amount:
                value += coin.price * amount
        return value

    def with_message(self, message: str) -> GameState:
        """Return a copy with only the status message replaced."""
        return self.model_copy(update={"message": message})
