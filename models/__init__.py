"""Data models for the crypto market simulator.

The engine, session, persistence and advisor providers all import from models.
"""

from models.coin import Coin, PricePoint
from models.config import AdvisorConfig, GameConfig, PersistenceConfig, SchedulerConfig
from models.events import (
    ActionType,
    AdviceTarget,
    CoinBrief,
    CoinHistory,
    NewsEvent,
    ProAdvice,
    Sentiment,
)
from models.hardware import MiningRig
from models.save import SaveSlot
from models.state import GameState, NewsItem
from models.trade import ExecutedTrade, TradeResult

__all__ = [
    # coin
    "Coin",
    "PricePoint",
    # config
    "AdvisorConfig",
    "GameConfig",
    "PersistenceConfig",
    "SchedulerConfig",
    # events
    "ActionType",
    "AdviceTarget",
    "CoinBrief",
    "CoinHistory",
    "NewsEvent",
    "ProAdvice",
    "Sentiment",
    # hardware
    "MiningRig",
    # save
    "SaveSlot",
    # state
    "GameState",
    "NewsItem",
    # trade
    "ExecutedTrade",
    "TradeResult",
]
