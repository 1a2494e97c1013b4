"""Abstract base class for news/advice providers.

Every provider (LLM-backed, mock, ...) implements this protocol so the game
session can call them interchangeably. Providers are asynchronous and may
fail; failures are reported as ``ProviderError`` and handled by the session.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod

from models.config import AdvisorConfig
from models.events import CoinBrief, CoinHistory, NewsEvent, ProAdvice


class ProviderError(Exception):
    """The provider could not produce a usable response."""


class AdviceContractError(ProviderError):
    """The provider answered, but the answer breaks the advice contract.

    The typical case is a recommendation to buy and sell the same coin. The
    session may retry these, unlike transport failures.
    """


class AdvisorProvider(ABC):
    """Common interface for pluggable news/advice generators.

    Lifecycle:
        1. ``__init__``: receive advisor config and the random source.
        2. ``request_news``: called by the session's news poll.
        3. ``request_advice``: called when the player buys Pro Advice.
    """

    def __init__(self, config: AdvisorConfig, rng: random.Random | None = None) -> None:
        self.config = config
        self.rng = rng or random.Random()

    @abstractmethod
    async def request_news(self, catalog: list[CoinBrief]) -> NewsEvent:
        """Return one news event about a coin in *catalog*.

        Raises ``ProviderError`` on any failure, including a response naming
        a coin outside *catalog* or an impact outside [5, 25].
        """

    @abstractmethod
    async def request_advice(self, histories: list[CoinHistory]) -> ProAdvice:
        """Return a buy/avoid recommendation based on *histories*.

        Raises ``AdviceContractError`` when both sides name the same coin and
        ``ProviderError`` on any other failure.
        """
