"""Narrative events, advice, and the payloads exchanged with advisor providers."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from models.coin import PricePoint


class Sentiment(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"


class ActionType(str, Enum):
    """Flat-cost market-moving actions applied to the selected coin."""

    PROMOTE = "promote"
    BRIBE = "bribe"


class CoinBrief(BaseModel):
    """Catalog entry sent to the news provider."""

    id: str
    name: str
    symbol: str


class CoinHistory(BaseModel):
    """Recent price samples for one coin, sent to the advice provider."""

    id: str
    name: str
    history: list[PricePoint]


class NewsEvent(BaseModel):
    """Externally generated news about one coin.

    ``impact`` is the absolute percentage move; the sign comes from
    ``sentiment``.
    """

    coin_id: str = Field(alias="coinId")
    headline: str
    content: str
    sentiment: Sentiment
    impact: int = Field(ge=5, le=25)

    model_config = {"populate_by_name": True}

    @property
    def multiplier(self) -> float:
        pct = self.impact / 100
        return 1 + pct if self.sentiment == Sentiment.POSITIVE else 1 - pct


class AdviceTarget(BaseModel):
    coin_id: str = Field(alias="coinId")
    reason: str

    model_config = {"populate_by_name": True}


class ProAdvice(BaseModel):
    """Buy/avoid recommendation pair. Both sides must name different coins."""

    buy: AdviceTarget
    sell: AdviceTarget

    @model_validator(mode="after")
    def _check_distinct(self) -> ProAdvice:
        if self.buy.coin_id == self.sell.coin_id:
            raise ValueError(
                f"Advice recommends buying and selling the same coin '{self.buy.coin_id}'."
            )
        return self

    def swapped(self) -> ProAdvice:
        return ProAdvice(buy=self.sell, sell=self.buy)
