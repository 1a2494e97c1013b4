"""Tests for the advisor registry, the mock advisor and the LLM advisor.

The LLM advisor is exercised with a fake chat model (``ainvoke`` is an
``AsyncMock``), so no API keys or network access are needed.
"""

from __future__ import annotations

import asyncio
import json
import random
from unittest.mock import AsyncMock, MagicMock

import pytest

import advisors.llm_advisor as llm_advisor
from advisors.base import AdviceContractError, ProviderError
from advisors.llm_advisor import LLMAdvisor, _message_text, _parse_json
from advisors.mock_advisor import MockAdvisor
from advisors.registry import create_advisor, register
from models.coin import PricePoint
from models.config import AdvisorConfig
from models.events import CoinBrief, CoinHistory, NewsEvent, ProAdvice

CATALOG = [
    CoinBrief(id="btc", name="Bitcoin", symbol="BTC"),
    CoinBrief(id="eth", name="Ethereum", symbol="ETH"),
    CoinBrief(id="doge", name="Dogecoin", symbol="DOGE"),
]


def _history(coin_id: str, prices: list[float]) -> CoinHistory:
    return CoinHistory(
        id=coin_id,
        name=coin_id.title(),
        history=[PricePoint(date=f"day-{i}", price=p) for i, p in enumerate(prices)],
    )


HISTORIES = [
    _history("btc", [100.0, 101.0]),
    _history("eth", [100.0, 130.0]),
    _history("doge", [100.0, 60.0]),
]


# =============================================================================
# Registry
# =============================================================================


class TestRegistry:
    def test_disabled(self):
        assert create_advisor(AdvisorConfig(provider=None)) is None

    def test_mock(self):
        assert isinstance(create_advisor(AdvisorConfig(provider="mock")), MockAdvisor)

    def test_unknown_name(self):
        config = AdvisorConfig.model_construct(provider="oracle")
        with pytest.raises(KeyError, match="Unknown advisor 'oracle'"):
            create_advisor(config)

    def test_duplicate_registration(self):
        with pytest.raises(ValueError, match="already registered"):
            register("mock")(MockAdvisor)

    def test_seeded_mock_is_reproducible(self):
        config = AdvisorConfig(provider="mock")
        a = create_advisor(config, random.Random(21))
        b = create_advisor(config, random.Random(21))
        assert asyncio.run(a.request_news(CATALOG)) == asyncio.run(b.request_news(CATALOG))


# =============================================================================
# Mock advisor
# =============================================================================


class TestMockAdvisor:
    def test_news_is_valid(self):
        advisor = MockAdvisor(AdvisorConfig(), rng=random.Random(1))
        ids = {c.id for c in CATALOG}
        for _ in range(50):
            event = asyncio.run(advisor.request_news(CATALOG))
            assert event.coin_id in ids
            assert 5 <= event.impact <= 25

    def test_news_is_reproducible(self):
        a = MockAdvisor(AdvisorConfig(), rng=random.Random(4))
        b = MockAdvisor(AdvisorConfig(), rng=random.Random(4))
        assert asyncio.run(a.request_news(CATALOG)) == asyncio.run(b.request_news(CATALOG))

    def test_empty_catalog(self):
        with pytest.raises(ProviderError):
            asyncio.run(MockAdvisor(AdvisorConfig()).request_news([]))

    def test_advice_follows_momentum(self):
        advice = asyncio.run(MockAdvisor(AdvisorConfig()).request_advice(HISTORIES))
        assert advice.buy.coin_id == "eth"
        assert advice.sell.coin_id == "doge"

    def test_advice_needs_two_coins(self):
        with pytest.raises(AdviceContractError):
            asyncio.run(MockAdvisor(AdvisorConfig()).request_advice(HISTORIES[:1]))


# =============================================================================
# LLM advisor
# =============================================================================


def _reply(payload) -> MagicMock:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return MagicMock(content=text)


@pytest.fixture
def fake_llm(monkeypatch) -> MagicMock:
    llm = MagicMock()
    llm.ainvoke = AsyncMock()
    monkeypatch.setattr(llm_advisor, "_create_llm", lambda config: llm)
    monkeypatch.setattr(llm_advisor, "_BACKOFF_SECONDS", 0.0)
    return llm


@pytest.fixture
def advisor(fake_llm) -> LLMAdvisor:
    return LLMAdvisor(AdvisorConfig(provider="llm"))


NEWS_PAYLOAD = {
    "coinId": "eth",
    "headline": "Upgrade ships early",
    "content": "Developers deliver ahead of schedule.",
    "sentiment": "POSITIVE",
    "impact": 12,
}

ADVICE_PAYLOAD = {
    "buy": {"coinId": "eth", "reason": "strong momentum"},
    "sell": {"coinId": "doge", "reason": "falling fast"},
}


class TestLLMNews:
    def test_news(self, advisor, fake_llm):
        fake_llm.ainvoke.return_value = _reply(NEWS_PAYLOAD)
        event = asyncio.run(advisor.request_news(CATALOG))
        assert isinstance(event, NewsEvent)
        assert event.coin_id == "eth"
        assert event.impact == 12

    def test_prompt_lists_the_catalog(self, advisor, fake_llm):
        fake_llm.ainvoke.return_value = _reply(NEWS_PAYLOAD)
        asyncio.run(advisor.request_news(CATALOG))
        messages = fake_llm.ainvoke.await_args.args[0]
        prompt = messages[-1].content
        assert "Bitcoin (BTC) - id: btc" in prompt
        assert "Dogecoin (DOGE) - id: doge" in prompt

    def test_fenced_json(self, advisor, fake_llm):
        fake_llm.ainvoke.return_value = _reply(f"```json\n{json.dumps(NEWS_PAYLOAD)}\n```")
        assert asyncio.run(advisor.request_news(CATALOG)).coin_id == "eth"

    def test_coin_outside_catalog(self, advisor, fake_llm):
        fake_llm.ainvoke.return_value = _reply({**NEWS_PAYLOAD, "coinId": "sol"})
        with pytest.raises(ProviderError, match="outside the catalog"):
            asyncio.run(advisor.request_news(CATALOG))

    def test_impact_out_of_range(self, advisor, fake_llm):
        fake_llm.ainvoke.return_value = _reply({**NEWS_PAYLOAD, "impact": 40})
        with pytest.raises(ProviderError):
            asyncio.run(advisor.request_news(CATALOG))

    def test_not_json(self, advisor, fake_llm):
        fake_llm.ainvoke.return_value = _reply("The market is wild today!")
        with pytest.raises(ProviderError, match="not valid JSON"):
            asyncio.run(advisor.request_news(CATALOG))


class TestLLMAdvice:
    def test_advice(self, advisor, fake_llm):
        fake_llm.ainvoke.return_value = _reply(ADVICE_PAYLOAD)
        advice = asyncio.run(advisor.request_advice(HISTORIES))
        assert isinstance(advice, ProAdvice)
        assert advice.buy.coin_id == "eth"
        assert advice.sell.reason == "falling fast"

    def test_same_coin_breaks_the_contract(self, advisor, fake_llm):
        fake_llm.ainvoke.return_value = _reply(
            {
                "buy": {"coinId": "eth", "reason": "up"},
                "sell": {"coinId": "eth", "reason": "down"},
            }
        )
        with pytest.raises(AdviceContractError):
            asyncio.run(advisor.request_advice(HISTORIES))

    def test_unknown_coin(self, advisor, fake_llm):
        fake_llm.ainvoke.return_value = _reply(
            {"buy": {"coinId": "sol", "reason": "up"}, "sell": {"coinId": "eth", "reason": "down"}}
        )
        with pytest.raises(ProviderError, match="outside the provided histories"):
            asyncio.run(advisor.request_advice(HISTORIES))

    def test_missing_fields(self, advisor, fake_llm):
        fake_llm.ainvoke.return_value = _reply({"buy": {"coinId": "eth"}})
        with pytest.raises(ProviderError):
            asyncio.run(advisor.request_advice(HISTORIES))


class TestTransport:
    def test_transient_error_is_retried(self, advisor, fake_llm):
        fake_llm.ainvoke.side_effect = [TimeoutError("slow"), _reply(NEWS_PAYLOAD)]
        assert asyncio.run(advisor.request_news(CATALOG)).coin_id == "eth"
        assert fake_llm.ainvoke.await_count == 2

    def test_gives_up_after_all_attempts(self, advisor, fake_llm):
        fake_llm.ainvoke.side_effect = ConnectionError("down")
        with pytest.raises(ProviderError, match="all 3 attempts failed"):
            asyncio.run(advisor.request_news(CATALOG))
        assert fake_llm.ainvoke.await_count == 3


class TestHelpers:
    def test_message_text_from_parts(self):
        parts = [{"type": "text", "text": '{"a": '}, {"type": "image"}, "1}"]
        assert _message_text(parts) == '{"a": 1}'

    def test_parse_json_rejects_arrays(self):
        with pytest.raises(ProviderError, match="Expected a JSON object"):
            _parse_json("[1, 2]")


class TestCreateLLM:
    def test_uses_configured_temperature(self, monkeypatch):
        chat_model = MagicMock()
        monkeypatch.setattr("langchain_openai.ChatOpenAI", chat_model)
        config = AdvisorConfig(provider="llm", llm_model="gpt-4o-mini", temperature=0.2)
        llm_advisor._create_llm(config)
        assert chat_model.call_args.kwargs["temperature"] == 0.2
        assert chat_model.call_args.kwargs["model"] == "gpt-4o-mini"

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported LLM provider"):
            llm_advisor._create_llm(AdvisorConfig(provider="llm", llm_provider="cohere"))
