"""In-process broker: trade validation and execution against a GameState.

The broker validates and executes orders using all-or-nothing semantics. It
owns no state of its own: every call takes the current ``GameState`` and
returns a ``TradeResult`` carrying the next one.
"""

from __future__ import annotations

import logging
import math
import random

from models.state import GameState
from models.trade import ExecutedTrade, TradeResult

logger = logging.getLogger(__name__)

SLIPPAGE_CHANCE = 0.1
SLIPPAGE_RATE = 0.1


class Broker:
    """Validates, prices and settles buy/sell orders.

    One uniform draw per order decides whether slippage hits. Slippage is a
    one-shot cost on the execution price: the coin's quoted price and history
    are never touched by a trade.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def buy(self, state: GameState, coin_id: str, amount: float) -> TradeResult:
        """Buy *amount* of *coin_id*.

        Cash is debited unless the game is in sandbox mode; holdings are
        always credited.
        """
        # ---- Phase 1: Validate ------------------------------------------
        rejection = self._validate_order(state, coin_id, amount, side="buy")
        if rejection is not None:
            return _reject(state, rejection)

        # ---- Phase 2: Price ---------------------------------------------
        coin = state.coin(coin_id)
        execution_price, slipped = self._execution_price(coin.price, side="buy")
        cost = amount * execution_price
        if not state.sandbox_mode and state.cash < cost:
            return _reject(state, "Not enough cash to make this purchase.")

        # ---- Phase 3: Commit --------------------------------------------
        holdings = dict(state.holdings)
        holdings[coin_id] = state.holding(coin_id) + amount
        message = f"Successfully bought {amount:.4f} {coin.symbol}."
        if slipped:
            message += " A costly mistake increased the price!"

        trade = ExecutedTrade(
            coin_id=coin_id,
            side="buy",
            amount=amount,
            quoted_price=coin.price,
            execution_price=execution_price,
            slipped=slipped,
            date=state.game_date,
        )
        next_state = state.model_copy(
            update={
                "cash": state.cash if state.sandbox_mode else state.cash - cost,
                "holdings": holdings,
                "message": message,
            }
        )
        logger.debug("Bought %.4f %s at $%.4f.", amount, coin.symbol, execution_price)
        return TradeResult(status="accepted", state=next_state, trade=trade, message=message)

    def sell(self, state: GameState, coin_id: str, amount: float) -> TradeResult:
        """Sell *amount* of *coin_id*.

        The holding check applies in sandbox mode too, and proceeds are
        credited to cash in every mode.
        """
        # ---- Phase 1: Validate ------------------------------------------
        rejection = self._validate_order(state, coin_id, amount, side="sell")
        if rejection is not None:
            return _reject(state, rejection)

        coin = state.coin(coin_id)
        held = state.holding(coin_id)
        if amount > held:
            return _reject(state, f"You only have {held:.4f} {coin.symbol} to sell.")

        # ---- Phase 2: Price ---------------------------------------------
        execution_price, slipped = self._execution_price(coin.price, side="sell")
        proceeds = amount * execution_price

        # ---- Phase 3: Commit --------------------------------------------
        holdings = dict(state.holdings)
        holdings[coin_id] = max(held - amount, 0.0)
        message = f"Successfully sold {amount:.4f} {coin.symbol}."
        if slipped:
            message += " A costly mistake decreased the price!"

        trade = ExecutedTrade(
            coin_id=coin_id,
            side="sell",
            amount=amount,
            quoted_price=coin.price,
            execution_price=execution_price,
            slipped=slipped,
            date=state.game_date,
        )
        next_state = state.model_copy(
            update={
                "cash": state.cash + proceeds,
                "holdings": holdings,
                "message": message,
            }
        )
        logger.debug("Sold %.4f %s at $%.4f.", amount, coin.symbol, execution_price)
        return TradeResult(status="accepted", state=next_state, trade=trade, message=message)

    def sell_all(self, state: GameState) -> TradeResult:
        """Sell the whole holding of the currently selected coin."""
        held = state.holding(state.selected_coin_id)
        if held <= 0:
            return _reject(state, "You have no coins to sell.")
        return self.sell(state, state.selected_coin_id, held)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_order(state: GameState, coin_id: str, amount: float, side: str) -> str | None:
        """Return an error message if the order is malformed, else ``None``."""
        if state.coin(coin_id) is None:
            return f"Unknown coin '{coin_id}'."
        if not isinstance(amount, (int, float)) or not math.isfinite(amount) or amount <= 0:
            return f"Please enter a positive amount to {side}."
        return None

    def _execution_price(self, quoted: float, side: str) -> tuple[float, bool]:
        """Apply adverse slippage with probability ``SLIPPAGE_CHANCE``."""
        if self._rng.random() >= SLIPPAGE_CHANCE:
            return quoted, False
        if side == "buy":
            return quoted * (1 + SLIPPAGE_RATE), True
        return quoted * (1 - SLIPPAGE_RATE), True


def _reject(state: GameState, message: str) -> TradeResult:
    return TradeResult(status="rejected", state=state.with_message(message), message=message)
