"""Market-moving actions and narrative events.

Covers the flat-cost actions (promote, bribe), procedural news, merging of
externally generated news, and the begin/settle/fail steps of a pro-advice
request. Every function here is a pure transition ``GameState -> GameState``;
rejections only change the status message.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable

from models.events import ActionType, NewsEvent, ProAdvice
from models.rules import (
    BRIBE_COST,
    BRIBE_MULTIPLIER,
    PRO_ADVICE_FEE,
    PROMOTE_COST,
    PROMOTE_MULTIPLIER,
)
from models.state import GameState, NewsItem
from simulation.price_model import clamp_price, record_price

logger = logging.getLogger(__name__)

# action -> (cost, price multiplier, success message template)
_ACTIONS: dict[ActionType, tuple[float, float, str]] = {
    ActionType.PROMOTE: (
        PROMOTE_COST,
        PROMOTE_MULTIPLIER,
        "You paid $400 to promote {name}! Price increased.",
    ),
    ActionType.BRIBE: (
        BRIBE_COST,
        BRIBE_MULTIPLIER,
        "You paid $100,000 to bribe the owners of {name}! Price doubled!",
    ),
}

TARGETED_NEWS_CHANCE = 0.7
NEWS_MOVE_MIN = 0.05
NEWS_MOVE_SPAN = 0.10
ADVICE_SWAP_CHANCE = 0.2

NEWS_UNAVAILABLE = "AI news service is currently unavailable."
ADVICE_UNAVAILABLE = "The AI analyst is unavailable right now. Try again later."


class Cooldown:
    """Minimum-interval gate for rate-limited requests.

    ``try_acquire`` returns ``True`` and restarts the interval when the gate
    is open, otherwise ``False``.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._interval = interval
        self._clock = clock
        self._last: float | None = None

    def try_acquire(self) -> bool:
        now = self._clock()
        if self._last is not None and now - self._last < self._interval:
            return False
        self._last = now
        return True


class MarketActions:
    """Applies actions and events to a game state using an injected random source."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Flat-cost actions
    # ------------------------------------------------------------------

    def apply_action(self, state: GameState, action: ActionType) -> GameState:
        """Pay for *action* and move the selected coin's price."""
        cost, multiplier, template = _ACTIONS[ActionType(action)]
        coin = state.selected_coin
        if not state.sandbox_mode and state.cash < cost:
            return state.with_message(f"Not enough cash for this action (Cost: ${cost:,.0f}).")

        repriced = record_price(coin, clamp_price(coin, coin.price * multiplier), state.game_date)
        return state.model_copy(
            update={
                "coins": _replace_coin(state.coins, repriced),
                "cash": state.cash if state.sandbox_mode else state.cash - cost,
                "message": template.format(name=coin.name),
            }
        )

    # ------------------------------------------------------------------
    # News
    # ------------------------------------------------------------------

    def procedural_news(self, state: GameState) -> GameState:
        """Roll a procedural headline; most of the time it moves one coin 5-15%."""
        rng = self._rng
        coins = state.coins
        if rng.random() < TARGETED_NEWS_CHANCE:
            target = coins[rng.randrange(len(coins))]
            positive = rng.random() < 0.5
            change = rng.random() * NEWS_MOVE_SPAN + NEWS_MOVE_MIN
            multiplier = 1 + change if positive else 1 - change
            if positive:
                headline = f"Positive Outlook for {target.name} ({target.symbol})!"
                content = (
                    f"A recent breakthrough in {target.name}'s technology has investors "
                    f"excited, causing a surge in its value."
                )
            else:
                headline = f"Regulatory Concerns for {target.name} ({target.symbol})!"
                content = (
                    f"Negative reports about {target.name}'s compliance have surfaced, "
                    f"leading to a significant price drop."
                )
            new_price = clamp_price(target, target.price * multiplier)
            coins = _replace_coin(coins, record_price(target, new_price, state.game_date))
        else:
            headline = "Market Sentiments are Mixed"
            content = (
                "While some tokens see minor gains, others face slight downturns. "
                "Overall market remains unpredictable."
            )

        return state.model_copy(
            update={
                "coins": coins,
                "news": NewsItem(headline=headline, content=content, is_ai_news=False),
                "message": "News updated! Check the headlines.",
            }
        )

    def apply_news_event(self, state: GameState, event: NewsEvent) -> GameState:
        """Merge an externally generated news event into the *current* state.

        The target coin is looked up again here, so the event applies to the
        latest price even if ticks ran while the request was in flight.
        """
        target = state.coin(event.coin_id)
        if target is None:
            logger.warning("Discarding news about unknown coin '%s'.", event.coin_id)
            return state.with_message(NEWS_UNAVAILABLE)

        new_price = clamp_price(target, target.price * event.multiplier)
        return state.model_copy(
            update={
                "coins": _replace_coin(
                    state.coins, record_price(target, new_price, state.game_date)
                ),
                "news": NewsItem(headline=event.headline, content=event.content, is_ai_news=True),
                "message": f"AI News Alert! Market reacts to news about {target.name}.",
            }
        )

    def news_failed(self, state: GameState) -> GameState:
        return state.with_message(NEWS_UNAVAILABLE)

    # ------------------------------------------------------------------
    # Pro advice
    # ------------------------------------------------------------------

    def begin_advice(self, state: GameState, fee: float = PRO_ADVICE_FEE) -> GameState:
        """Mark an advice request in flight, or reject it.

        Callers check ``is_generating_advice`` on the result to know whether
        the request may be dispatched.
        """
        if state.is_generating_advice:
            return state.with_message("The AI analyst is already working on your request.")
        if not state.sandbox_mode and state.cash < fee:
            return state.with_message("Not enough cash to buy Pro Advice.")
        return state.model_copy(
            update={"is_generating_advice": True, "message": "AI analyst is thinking..."}
        )

    def settle_advice(
        self,
        state: GameState,
        advice: ProAdvice,
        fee: float = PRO_ADVICE_FEE,
    ) -> GameState:
        """Charge the fee and publish *advice* against the current state.

        With probability ``ADVICE_SWAP_CHANCE`` the recommendations are
        swapped and the message flags reduced confidence. Cash is re-checked
        because time may have passed since ``begin_advice``.
        """
        buy_coin = state.coin(advice.buy.coin_id)
        sell_coin = state.coin(advice.sell.coin_id)
        if buy_coin is None or sell_coin is None:
            logger.warning(
                "Advice names unknown coin(s): buy=%s sell=%s",
                advice.buy.coin_id,
                advice.sell.coin_id,
            )
            return self.advice_failed(state)
        if not state.sandbox_mode and state.cash < fee:
            return state.model_copy(
                update={
                    "is_generating_advice": False,
                    "message": "Not enough cash to pay for Pro Advice.",
                }
            )

        prefix = ""
        if self._rng.random() < ADVICE_SWAP_CHANCE:
            advice = advice.swapped()
            buy_coin, sell_coin = sell_coin, buy_coin
            prefix = "AI Advice (Inaccurate): The AI seems confused today... "

        message = (
            f'{prefix}AI says: "Consider buying {buy_coin.name} because {advice.buy.reason}. '
            f'It might be wise to avoid {sell_coin.name} because {advice.sell.reason}."'
        )
        return state.model_copy(
            update={
                "cash": state.cash if state.sandbox_mode else state.cash - fee,
                "message": message,
                "is_generating_advice": False,
            }
        )

    def advice_failed(self, state: GameState) -> GameState:
        return state.model_copy(
            update={"is_generating_advice": False, "message": ADVICE_UNAVAILABLE}
        )


def _replace_coin(coins, coin):
    return [coin if c.id == coin.id else c for c in coins]
