"""Trade execution models: ExecutedTrade, TradeResult."""

from typing import Literal

from pydantic import BaseModel

from models.state import GameState


class ExecutedTrade(BaseModel):
    """Single settled trade.

    ``execution_price`` differs from ``quoted_price`` when slippage hit the
    order (``slipped``); the coin's quoted price is never changed by a trade.
    """

    coin_id: str
    side: Literal["buy", "sell"]
    amount: float
    quoted_price: float
    execution_price: float
    slipped: bool = False
    date: str


class TradeResult(BaseModel):
    """Ledger response to a buy or sell.

    Execution is all-or-nothing: when rejected, ``state`` equals the input
    state except for its message, and ``trade`` is ``None``.
    """

    status: Literal["accepted", "rejected"]
    state: GameState
    trade: ExecutedTrade | None = None
    message: str = ""

    @property
    def accepted(self) -> bool:
        return self.status == "accepted"
