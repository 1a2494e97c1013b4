"""Game engine: new-game factory and the canonical state transitions.

``GameEngine`` composes the price model, the broker and the market actions
over one shared random source and owns the tick transition:

    1. advance the game date by ``time_speed`` days;
    2. move every coin's price;
    3. mine with the freshly updated prices and merge all yields;
    4. bump the tick counter.

All four happen in one ``model_copy`` so no caller ever sees a half-ticked
state.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone

from models.coin import Coin, PricePoint
from models.hardware import MiningRig
from models.rules import (
    DEFAULT_COIN_ID,
    DEFAULT_TIME_SPEED,
    INITIAL_COINS,
    NORMAL_STARTING_CASH,
    PC_SLOTS,
    SANDBOX_STARTING_CASH,
)
from models.state import GameState, NewsItem
from simulation.actions import MarketActions
from simulation.broker import Broker
from simulation.mining import merge_yields, mine
from simulation.price_model import PriceModel

logger = logging.getLogger(__name__)


def new_game_state(
    sandbox: bool = False,
    now: datetime | None = None,
    pc_slots: int = PC_SLOTS,
) -> GameState:
    """Build a fresh game from the coin catalog.

    Every coin starts with a single history sample at *now*.
    """
    now_iso = (now or datetime.now(timezone.utc)).isoformat()
    starting_cash = SANDBOX_STARTING_CASH if sandbox else NORMAL_STARTING_CASH
    coins = [
        Coin(**entry, history=[PricePoint(date=now_iso, price=entry["price"])])
        for entry in INITIAL_COINS
    ]
    return GameState(
        coins=coins,
        selected_coin_id=DEFAULT_COIN_ID,
        cash=starting_cash,
        holdings={},
        message="Welcome! Choose a coin and start trading.",
        sandbox_mode=sandbox,
        initial_cash=starting_cash,
        news=NewsItem(
            headline="Market is Stable",
            content="No major news affecting the crypto market today.",
        ),
        time_step=1,
        game_date=now_iso,
        time_speed=DEFAULT_TIME_SPEED,
        pcs=[MiningRig(id=i) for i in range(pc_slots)],
    )


def advance_date(game_date: str, days: int) -> str:
    return (datetime.fromisoformat(game_date) + timedelta(days=days)).isoformat()


class GameEngine:
    """Owns the simulation components and the state-level transitions."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.prices = PriceModel(self.rng)
        self.broker = Broker(self.rng)
        self.actions = MarketActions(self.rng)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def new_game(self, sandbox: bool = False, now: datetime | None = None) -> GameState:
        return new_game_state(sandbox=sandbox, now=now)

    def tick(self, state: GameState, elapsed_real_seconds: float = 1.0) -> GameState:
        """Advance the simulation by one tick.

        *elapsed_real_seconds* is informational: the in-game step is always
        ``time_speed`` days, whatever the real-time period of the timer.
        A paused game (``time_speed == 0``) is returned unchanged.
        """
        days = state.time_speed
        if days == 0:
            return state

        new_date = advance_date(state.game_date, days)
        coins = [self.prices.advance(coin, new_date) for coin in state.coins]
        # Mining is priced after this tick's price update.
        yields = mine(state.pcs, coins, days)

        logger.debug(
            "Tick %d: +%d day(s) (%.2fs real), mined %s",
            state.time_step,
            days,
            elapsed_real_seconds,
            yields or "nothing",
        )
        return state.model_copy(
            update={
                "coins": coins,
                "holdings": merge_yields(state.holdings, yields),
                "game_date": new_date,
                "time_step": state.time_step + 1,
            }
        )

    @staticmethod
    def is_game_over(state: GameState) -> bool:
        """Terminal condition: cash depleted outside sandbox mode."""
        return state.cash <= 0 and not state.sandbox_mode

    # ------------------------------------------------------------------
    # Mode and settings
    # ------------------------------------------------------------------

    def enable_sandbox(self, state: GameState) -> GameState:
        """Switch the running game to sandbox mode without touching progress."""
        if state.sandbox_mode:
            return state.with_message("Sandbox Mode is already enabled.")
        return state.model_copy(
            update={
                "sandbox_mode": True,
                "cash": SANDBOX_STARTING_CASH,
                "message": "Sandbox Mode enabled. Enjoy unlimited funds!",
            }
        )

    def disable_sandbox(self, state: GameState, confirmed: bool = False) -> GameState:
        """Leave sandbox mode by starting a brand-new normal game.

        Destructive: coins, holdings and rigs are discarded. The caller must
        have asked the player and pass ``confirmed=True``.
        """
        if not state.sandbox_mode:
            return state.with_message("Sandbox Mode is not enabled.")
        if not confirmed:
            return state.with_message(
                "Leaving Sandbox Mode starts a new normal game. Confirm to continue."
            )
        logger.info("Sandbox disabled: starting a new normal-mode game.")
        return self.new_game(sandbox=False)

    def reset(self, state: GameState, confirmed: bool = False) -> GameState:
        """Start a new normal game in place of *state* (confirmation required)."""
        if not confirmed:
            return state.with_message("Resetting starts a new game. Confirm to continue.")
        logger.info("Game reset at tick %d.", state.time_step)
        return self.new_game(sandbox=False)

    def set_time_speed(self, state: GameState, speed: int) -> GameState:
        if isinstance(speed, bool) or not isinstance(speed, int) or speed < 0:
            return state.with_message(f"Invalid time speed: {speed!r}.")
        label = "Paused" if speed == 0 else f"{speed} day(s) per tick"
        return state.model_copy(update={"time_speed": speed, "message": f"Time speed: {label}."})

    def select_coin(self, state: GameState, coin_id: str) -> GameState:
        coin = state.coin(coin_id)
        if coin is None:
            return state.with_message(f"Unknown coin '{coin_id}'.")
        return state.model_copy(
            update={"selected_coin_id": coin_id, "message": f"Selected {coin.name}"}
        )
