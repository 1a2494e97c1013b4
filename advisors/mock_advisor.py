"""Mock advisor: deterministic news and advice without any API calls.

Used for offline play and tests. News is drawn from a seedable random
source; advice ranks coins by momentum over the supplied history.
"""

from __future__ import annotations

from advisors.base import AdviceContractError, AdvisorProvider, ProviderError
from advisors.registry import register
from models.events import (
    AdviceTarget,
    CoinBrief,
    CoinHistory,
    NewsEvent,
    ProAdvice,
    Sentiment,
)

_POSITIVE_STORIES = [
    (
        "Major Exchange Lists Token",
        "{name} lands a listing on a top-tier exchange, opening the floodgates for new buyers.",
    ),
    (
        "Celebrity Endorsement Goes Viral",
        "A famous investor praises {name} on live television and retail traders pile in.",
    ),
    (
        "Network Upgrade Ships Early",
        "{name} developers deliver a long-awaited upgrade ahead of schedule.",
    ),
]
_NEGATIVE_STORIES = [
    (
        "Security Flaw Discovered",
        "Researchers disclose a flaw in {name} wallets and holders rush for the exits.",
    ),
    (
        "Regulators Open Inquiry",
        "Authorities announce an investigation into {name}'s largest issuer.",
    ),
    (
        "Key Partnership Collapses",
        "A flagship partner walks away from {name}, citing integration problems.",
    ),
]


def _momentum(history: CoinHistory) -> float:
    if len(history.history) < 2 or history.history[0].price <= 0:
        return 0.0
    first, last = history.history[0].price, history.history[-1].price
    return (last - first) / first


@register("mock")
class MockAdvisor(AdvisorProvider):
    """Offline advisor with deterministic behaviour for a given seed."""

    async def request_news(self, catalog: list[CoinBrief]) -> NewsEvent:
        if not catalog:
            raise ProviderError("Cannot write news for an empty catalog.")
        rng = self.rng
        coin = catalog[rng.randrange(len(catalog))]
        positive = rng.random() < 0.5
        headline, content = rng.choice(_POSITIVE_STORIES if positive else _NEGATIVE_STORIES)
        return NewsEvent(
            coin_id=coin.id,
            headline=headline,
            content=content.format(name=coin.name),
            sentiment=Sentiment.POSITIVE if positive else Sentiment.NEGATIVE,
            impact=rng.randint(5, 25),
        )

    async def request_advice(self, histories: list[CoinHistory]) -> ProAdvice:
        if len(histories) < 2:
            raise AdviceContractError("Need at least two coins to recommend a buy and a sell.")
        ranked = sorted(histories, key=_momentum)
        best, worst = ranked[-1], ranked[0]
        return ProAdvice(
            buy=AdviceTarget(
                coin_id=best.id,
                reason=f"it gained {_momentum(best) * 100:.1f}% over the recent window",
            ),
            sell=AdviceTarget(
                coin_id=worst.id,
                reason=f"it moved {_momentum(worst) * 100:.1f}% over the recent window",
            ),
        )
