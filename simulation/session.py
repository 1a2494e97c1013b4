"""Game session: the single owner of the live game state.

Lifecycle:
    1. Build the session around a loaded or new ``GameState``. The command
       table is registered once, here, and never rebound.
    2. ``start()`` subscribes the tick, news-poll and autosave timers.
    3. Player commands and timer callbacks all funnel through ``apply``,
       which swaps in ``transition(current_state)`` in one synchronous step.
    4. Async provider calls (news, advice) await the advisor, then merge the
       result with ``apply`` against whatever the state is *at that moment*.
    5. Cash depletion outside sandbox ends the session exactly once: timers
       are cancelled, ``on_game_over`` fires and the state is discarded.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from advisors.base import AdviceContractError, AdvisorProvider
from models.config import GameConfig
from models.events import ActionType, CoinBrief, CoinHistory
from models.rules import ADVICE_HISTORY_WINDOW, PRO_ADVICE_FEE
from models.state import GameState
from models.trade import ExecutedTrade, TradeResult
from simulation import mining
from simulation.actions import Cooldown
from simulation.engine import GameEngine
from simulation.persistence import SaveSlotStore
from simulation.scheduler import Scheduler

logger = logging.getLogger(__name__)

Transition = Callable[[GameState], GameState]


class GameSession:
    """Drives one game: timers, player commands and provider round-trips."""

    def __init__(
        self,
        state: GameState,
        engine: GameEngine,
        config: GameConfig | None = None,
        advisor: AdvisorProvider | None = None,
        store: SaveSlotStore | None = None,
        slot_index: int | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
        on_game_over: Callable[[GameState], Any] | None = None,
    ) -> None:
        self._state: GameState | None = state
        self._engine = engine
        self._config = config or GameConfig()
        self._advisor = advisor
        self._store = store
        self._slot_index = slot_index
        self._scheduler = scheduler or Scheduler()
        self._on_game_over = on_game_over

        self._news_cooldown = Cooldown(self._config.scheduler.news_cooldown_seconds, clock)
        self._news_in_flight = False
        self._game_over = False
        self._max_ticks: int | None = None
        self._ticks_run = 0
        self._stopped = asyncio.Event()
        self._trade_history: list[ExecutedTrade] = []

        self._commands: dict[str, Callable[..., Any]] = {
            "buy": self.buy,
            "sell": self.sell,
            "sell_all": self.sell_all,
            "select_coin": self.select_coin,
            "promote": lambda: self.perform_action(ActionType.PROMOTE),
            "bribe": lambda: self.perform_action(ActionType.BRIBE),
            "news": self.read_news,
            "buy_pc": self.buy_pc,
            "buy_gpu": self.buy_gpu,
            "set_mining_coin": self.set_mining_coin,
            "set_speed": self.set_speed,
            "enable_sandbox": self.enable_sandbox,
            "disable_sandbox": self.disable_sandbox,
            "reset": self.reset,
            "save": self.save,
        }

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> GameState | None:
        """Current state, or ``None`` once the game is over."""
        return self._state

    @property
    def game_over(self) -> bool:
        return self._game_over

    @property
    def trade_history(self) -> list[ExecutedTrade]:
        return list(self._trade_history)

    @property
    def commands(self) -> list[str]:
        return sorted(self._commands)

    def apply(self, transition: Transition) -> GameState | None:
        """Replace the state with ``transition(state)`` and check for game over.

        Returns the new state, or ``None`` when the session has already
        ended (the transition is then discarded).
        """
        if self._state is None:
            logger.debug("Session ended; discarding transition.")
            return None
        self._state = transition(self._state)
        self._check_game_over()
        return self._state

    def execute(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Run the registered command *name*."""
        try:
            command = self._commands[name]
        except KeyError:
            raise KeyError(
                f"Unknown command '{name}'. Available: {', '.join(self.commands)}."
            ) from None
        return command(*args, **kwargs)

    # ------------------------------------------------------------------
    # Player commands
    # ------------------------------------------------------------------

    def buy(self, amount: float, coin_id: str | None = None) -> TradeResult | None:
        return self._trade(
            lambda s: self._engine.broker.buy(s, coin_id or s.selected_coin_id, amount)
        )

    def sell(self, amount: float, coin_id: str | None = None) -> TradeResult | None:
        return self._trade(
            lambda s: self._engine.broker.sell(s, coin_id or s.selected_coin_id, amount)
        )

    def sell_all(self) -> TradeResult | None:
        return self._trade(self._engine.broker.sell_all)

    def select_coin(self, coin_id: str) -> GameState | None:
        return self.apply(lambda s: self._engine.select_coin(s, coin_id))

    def perform_action(self, action: ActionType) -> GameState | None:
        return self.apply(lambda s: self._engine.actions.apply_action(s, action))

    def read_news(self) -> GameState | None:
        return self.apply(self._engine.actions.procedural_news)

    def buy_pc(self, pc_id: int) -> GameState | None:
        return self.apply(lambda s: mining.buy_or_upgrade_pc(s, pc_id))

    def buy_gpu(self, pc_id: int) -> GameState | None:
        return self.apply(lambda s: mining.buy_gpu(s, pc_id))

    def set_mining_coin(self, pc_id: int, coin_id: str | None) -> GameState | None:
        return self.apply(lambda s: mining.set_mining_coin(s, pc_id, coin_id))

    def set_speed(self, speed: int) -> GameState | None:
        return self.apply(lambda s: self._engine.set_time_speed(s, speed))

    def enable_sandbox(self) -> GameState | None:
        return self.apply(self._engine.enable_sandbox)

    def disable_sandbox(self, confirmed: bool = False) -> GameState | None:
        return self.apply(lambda s: self._engine.disable_sandbox(s, confirmed))

    def reset(self, confirmed: bool = False) -> GameState | None:
        return self.apply(lambda s: self._engine.reset(s, confirmed))

    def save(self, slot_index: int | None = None) -> GameState | None:
        """Write the current state to *slot_index* (default: the session's slot)."""
        index = self._slot_index if slot_index is None else slot_index
        if self._state is None:
            return None
        if self._store is None or index is None:
            return self.apply(lambda s: s.with_message("No save slot is attached to this game."))
        self._store.save_game(index, self._state)
        return self.apply(lambda s: s.with_message(f"Game saved to slot {index + 1}."))

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def tick(self, elapsed_real_seconds: float | None = None) -> GameState | None:
        elapsed = elapsed_real_seconds or self._config.scheduler.tick_seconds
        state = self.apply(lambda s: self._engine.tick(s, elapsed))
        self._ticks_run += 1
        if state is not None and self._max_ticks is not None and self._ticks_run >= self._max_ticks:
            logger.info("Reached %d tick(s); stopping.", self._max_ticks)
            self.stop()
        return state

    def start(self) -> None:
        """Subscribe the periodic timers. Must run inside an event loop."""
        cfg = self._config.scheduler
        self._scheduler.every(cfg.tick_seconds, self.tick, name="tick")
        if self._advisor is not None:
            self._scheduler.every(cfg.news_poll_seconds, self._poll_news, name="news_poll")
        if self._store is not None and self._slot_index is not None:
            self._scheduler.every(cfg.autosave_seconds, self._autosave, name="autosave")
        logger.info(
            "Session started (tick %.1fs, AI news %s, autosave %s).",
            cfg.tick_seconds,
            "on" if self._advisor is not None else "off",
            "on" if self._store is not None and self._slot_index is not None else "off",
        )

    def stop(self) -> None:
        self._scheduler.cancel_all()
        self._stopped.set()

    async def run(self, max_ticks: int | None = None) -> GameState | None:
        """Start the timers and wait until stopped, game over, or *max_ticks* ticks ran."""
        self._max_ticks = max_ticks
        self._ticks_run = 0
        self.start()
        await self._stopped.wait()
        return self._state

    async def _poll_news(self) -> None:
        if self._state is None or self._state.time_speed == 0:
            return
        await self.request_news()

    def _autosave(self) -> None:
        if self._state is None or self._store is None or self._slot_index is None:
            return
        logger.info("Autosaving game in slot %d...", self._slot_index + 1)
        self._store.save_game(self._slot_index, self._state)

    # ------------------------------------------------------------------
    # Provider round-trips
    # ------------------------------------------------------------------

    async def request_news(self) -> bool:
        """Ask the advisor for a news event and merge it into the latest state.

        Silently skipped while a news request is in flight or within the
        cooldown. Returns ``True`` if an event was applied.
        """
        if self._advisor is None or self._state is None or self._news_in_flight:
            return False
        if not self._news_cooldown.try_acquire():
            logger.debug("AI news request skipped: cooldown active.")
            return False

        self._news_in_flight = True
        try:
            catalog = [CoinBrief(id=c.id, name=c.name, symbol=c.symbol) for c in self._state.coins]
            event = await self._advisor.request_news(catalog)
        except Exception as exc:
            logger.warning("AI news request failed: %s", exc)
            self.apply(self._engine.actions.news_failed)
            return False
        finally:
            self._news_in_flight = False

        logger.info("AI news: %s", event.headline)
        return self.apply(lambda s: self._engine.actions.apply_news_event(s, event)) is not None

    async def request_advice(self) -> bool:
        """Buy Pro Advice: dispatch the advisor call and settle on completion.

        Returns ``True`` if the advisor answered and the answer was merged
        (settlement may still decline it if cash ran out meanwhile).
        """
        if self._state is None:
            return False
        if self._advisor is None:
            self.apply(lambda s: s.with_message("The AI analyst is not available in this game."))
            return False
        if self._state.is_generating_advice:
            self.apply(self._engine.actions.begin_advice)
            return False

        state = self.apply(lambda s: self._engine.actions.begin_advice(s, PRO_ADVICE_FEE))
        if state is None or not state.is_generating_advice:
            return False

        histories = [
            CoinHistory(id=c.id, name=c.name, history=c.history[-ADVICE_HISTORY_WINDOW:])
            for c in state.coins
        ]
        advice = None
        attempts = self._config.advisor.max_retries
        try:
            for attempt in range(1, attempts + 1):
                try:
                    advice = await self._advisor.request_advice(histories)
                    break
                except AdviceContractError as exc:
                    logger.warning("Advice rejected (attempt %d/%d): %s", attempt, attempts, exc)
        except Exception as exc:
            logger.warning("AI advice request failed: %s", exc)

        if advice is None:
            self._finish_advice(self._engine.actions.advice_failed)
            return False
        return self._finish_advice(
            lambda s: self._engine.actions.settle_advice(s, advice, PRO_ADVICE_FEE)
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _trade(self, order: Callable[[GameState], TradeResult]) -> TradeResult | None:
        results: list[TradeResult] = []

        def _transition(state: GameState) -> GameState:
            result = order(state)
            results.append(result)
            return result.state

        self.apply(_transition)
        if not results:
            return None
        result = results[0]
        if result.trade is not None:
            self._trade_history.append(result.trade)
        return result

    def _finish_advice(self, transition: Transition) -> bool:
        """Apply *transition* only if the advice request is still outstanding.

        The flag is gone when the game was reset or replaced while the
        provider was thinking; the late result is then dropped. Returns
        whether the transition was applied.
        """
        applied: list[bool] = []

        def _guarded(state: GameState) -> GameState:
            if not state.is_generating_advice:
                logger.info("Dropping advice result: request no longer outstanding.")
                return state
            applied.append(True)
            return transition(state)

        self.apply(_guarded)
        return bool(applied)

    def _check_game_over(self) -> None:
        state = self._state
        if self._game_over or state is None or not self._engine.is_game_over(state):
            return
        self._game_over = True
        logger.info("Game over at tick %d: out of cash.", state.time_step)
        self.stop()
        self._state = None
        if self._on_game_over is not None:
            self._on_game_over(state)
