"""LLM-backed advisor: news and pro advice from a LangChain chat model.

Prompts are Jinja2 templates in ``advisors/prompts/``. The model is asked for
a bare JSON object; the reply is parsed (tolerating markdown code fences) and
validated against the pydantic event models before it reaches the game.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import re
from pathlib import Path

import jinja2
from dotenv import load_dotenv
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import ValidationError

from advisors.base import AdviceContractError, AdvisorProvider, ProviderError
from advisors.registry import register
from models.config import AdvisorConfig
from models.events import CoinBrief, CoinHistory, NewsEvent, ProAdvice

load_dotenv()  # auto-load .env file if present

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent / "prompts"

_SYSTEM_PROMPT = "You write game content for a crypto trading simulator. Always answer in JSON."

# Transport retries per request, with exponential backoff between attempts.
_TRANSPORT_ATTEMPTS = 3
_BACKOFF_SECONDS = 1.0


def _create_llm(config: AdvisorConfig):
    """Instantiate the appropriate LangChain chat model from config."""
    provider = config.llm_provider.lower()

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=config.llm_model,
            temperature=config.temperature,
            timeout=60,
        )
    elif provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        return ChatAnthropic(
            model=config.llm_model,
            temperature=config.temperature,
            timeout=60,
        )
    else:
        raise ValueError(
            f"Unsupported LLM provider '{provider}'. "
            f"Supported: 'openai', 'anthropic'."
        )


@register("llm")
class LLMAdvisor(AdvisorProvider):
    """Advisor that asks a chat model for news events and trading advice."""

    def __init__(self, config: AdvisorConfig, rng: random.Random | None = None) -> None:
        super().__init__(config, rng)
        self._llm = _create_llm(config)
        self._jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(_PROMPTS_DIR)),
            undefined=jinja2.StrictUndefined,
        )

    async def request_news(self, catalog: list[CoinBrief]) -> NewsEvent:
        prompt = self._jinja_env.get_template("news.j2").render(
            coins=catalog, min_impact=5, max_impact=25
        )
        data = _parse_json(await self._call(self._llm, prompt))
        try:
            event = NewsEvent.model_validate(data)
        except ValidationError as exc:
            raise ProviderError(f"News response failed validation: {exc}") from exc

        if event.coin_id not in {c.id for c in catalog}:
            raise ProviderError(f"News names a coin outside the catalog: '{event.coin_id}'.")
        logger.info(
            "LLM news about %s (%s %d%%).", event.coin_id, event.sentiment.value, event.impact
        )
        return event

    async def request_advice(self, histories: list[CoinHistory]) -> ProAdvice:
        prompt = self._jinja_env.get_template("advice.j2").render(
            histories_json=json.dumps([h.model_dump() for h in histories])
        )
        data = _parse_json(await self._call(self._llm, prompt))
        buy, sell = data.get("buy"), data.get("sell")
        if isinstance(buy, dict) and isinstance(sell, dict):
            if buy.get("coinId") is not None and buy.get("coinId") == sell.get("coinId"):
                raise AdviceContractError("AI recommended buying and selling the same coin.")
        try:
            advice = ProAdvice.model_validate(data)
        except ValidationError as exc:
            raise ProviderError(f"Advice response failed validation: {exc}") from exc

        known = {h.id for h in histories}
        if advice.buy.coin_id not in known or advice.sell.coin_id not in known:
            raise ProviderError("Advice names a coin outside the provided histories.")
        return advice

    # ------------------------------------------------------------------
    # LLM call helper
    # ------------------------------------------------------------------

    async def _call(self, llm, prompt: str) -> str:
        """Invoke *llm* and return its text, retrying transient errors."""
        messages = [SystemMessage(content=_SYSTEM_PROMPT), HumanMessage(content=prompt)]
        for attempt in range(_TRANSPORT_ATTEMPTS):
            try:
                response = await llm.ainvoke(messages)
                return _message_text(response.content)
            except Exception as exc:
                if attempt == _TRANSPORT_ATTEMPTS - 1:
                    raise ProviderError(
                        f"{type(exc).__name__}: {exc} (all {_TRANSPORT_ATTEMPTS} attempts failed)"
                    ) from exc
                wait = _BACKOFF_SECONDS * 2**attempt
                logger.warning(
                    "LLM call failed (%s), retrying in %.0fs (attempt %d/%d).",
                    type(exc).__name__,
                    wait,
                    attempt + 1,
                    _TRANSPORT_ATTEMPTS,
                )
                await asyncio.sleep(wait)
        raise ProviderError("LLM call did not run.")


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _message_text(content) -> str:
    """Flatten LangChain message content (str or list of parts) to text."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def _parse_json(text: str) -> dict:
    """Parse JSON from an LLM response, handling markdown code blocks."""
    match = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
    json_str = match.group(1) if match else text
    json_str = json_str.strip()
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise ProviderError(f"Response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ProviderError(f"Expected a JSON object, got {type(data).__name__}.")
    return data
