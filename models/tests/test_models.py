"""Tests for the game data models.

Covers field validation, the derived properties (hash rate, net worth, news
multiplier), the distinct-coins rule on advice, JSON round-trips of the
game state, and YAML config loading.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from models import (
    AdviceTarget,
    AdvisorConfig,
    Coin,
    GameConfig,
    GameState,
    MiningRig,
    NewsEvent,
    ProAdvice,
    SaveSlot,
    Sentiment,
)
from models.rules import INITIAL_COINS, STABLECOIN_ID
from simulation.engine import new_game_state

START = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def state() -> GameState:
    return new_game_state(now=START)


# =============================================================================
# Coin catalog and rigs
# =============================================================================


class TestCatalog:
    def test_catalog_has_twenty_unique_coins(self):
        ids = [entry["id"] for entry in INITIAL_COINS]
        assert len(ids) == 20
        assert len(set(ids)) == 20

    def test_only_the_stablecoin_is_flagged_stable(self):
        stable = [entry["id"] for entry in INITIAL_COINS if entry.get("stable")]
        assert stable == [STABLECOIN_ID]

    def test_coin_price_must_be_positive(self):
        with pytest.raises(ValidationError):
            Coin(id="zero", name="Zero", symbol="ZRO", price=0)


class TestMiningRig:
    def test_hash_rate(self):
        rig = MiningRig(id=0, level=2, gpus=3, mining_coin_id="btc")
        assert rig.hash_rate == 40

    def test_unowned_rig_is_inactive(self):
        assert not MiningRig(id=0, gpus=1, mining_coin_id="btc").is_active

    def test_rig_without_gpu_is_inactive(self):
        assert not MiningRig(id=0, level=1, mining_coin_id="btc").is_active

    def test_rig_without_coin_is_inactive(self):
        assert not MiningRig(id=0, level=1, gpus=1).is_active

    def test_level_and_gpu_limits(self):
        with pytest.raises(ValidationError):
            MiningRig(id=0, level=5)
        with pytest.raises(ValidationError):
            MiningRig(id=0, level=1, gpus=11)


# =============================================================================
# Game state
# =============================================================================


class TestGameState:
    def test_selected_coin_must_exist(self, state):
        data = state.model_dump()
        data["selected_coin_id"] = "nope"
        with pytest.raises(ValidationError, match="not in the coin catalog"):
            GameState.model_validate(data)

    def test_missing_holding_counts_as_zero(self, state):
        assert state.holding("eth") == 0.0

    def test_net_worth_values_holdings_at_quoted_price(self, state):
        rich = state.model_copy(update={"cash": 500.0, "holdings": {"btc": 0.5, "eth": 2.0}})
        assert rich.net_worth == pytest.approx(500.0 + 30_000.0 + 6_000.0)

    def test_with_message_changes_only_the_message(self, state):
        updated = state.with_message("hello")
        assert updated.message == "hello"
        assert updated.model_dump(exclude={"message"}) == state.model_dump(exclude={"message"})

    def test_json_round_trip(self, state):
        busy = state.model_copy(
            update={
                "holdings": {"btc": 0.25},
                "pcs": [MiningRig(id=0, level=2, gpus=3, mining_coin_id="eth"), *state.pcs[1:]],
            }
        )
        restored = GameState.model_validate_json(busy.model_dump_json())
        assert restored == busy

    def test_advice_flag_is_not_serialized(self, state):
        busy = state.model_copy(update={"is_generating_advice": True})
        assert "is_generating_advice" not in busy.model_dump()
        assert not GameState.model_validate_json(busy.model_dump_json()).is_generating_advice

    def test_selected_coin_outside_catalog_raises(self, state):
        broken = state.model_copy(update={"selected_coin_id": "gone"})
        with pytest.raises(ValueError, match="not in the catalog"):
            broken.selected_coin

    def test_time_speed_cannot_be_negative(self, state):
        data = state.model_dump()
        data["time_speed"] = -1
        with pytest.raises(ValidationError):
            GameState.model_validate(data)


# =============================================================================
# Events and advice
# =============================================================================


class TestNewsEvent:
    def test_parses_provider_keys(self):
        event = NewsEvent.model_validate(
            {
                "coinId": "eth",
                "headline": "Upgrade ships",
                "content": "It shipped.",
                "sentiment": "POSITIVE",
                "impact": 10,
            }
        )
        assert event.coin_id == "eth"
        assert event.sentiment is Sentiment.POSITIVE
        assert event.multiplier == pytest.approx(1.10)

    def test_negative_multiplier(self):
        event = NewsEvent(
            coin_id="eth", headline="h", content="c", sentiment=Sentiment.NEGATIVE, impact=20
        )
        assert event.multiplier == pytest.approx(0.80)

    @pytest.mark.parametrize("impact", [4, 26, 100])
    def test_impact_out_of_range_is_rejected(self, impact):
        with pytest.raises(ValidationError):
            NewsEvent(
                coin_id="eth", headline="h", content="c", sentiment="POSITIVE", impact=impact
            )


class TestProAdvice:
    def test_same_coin_on_both_sides_is_rejected(self):
        with pytest.raises(ValidationError, match="same coin"):
            ProAdvice(
                buy=AdviceTarget(coin_id="btc", reason="up"),
                sell=AdviceTarget(coin_id="btc", reason="down"),
            )

    def test_swapped(self):
        advice = ProAdvice(
            buy=AdviceTarget(coin_id="eth", reason="up"),
            sell=AdviceTarget(coin_id="doge", reason="down"),
        )
        swapped = advice.swapped()
        assert swapped.buy.coin_id == "doge"
        assert swapped.sell.coin_id == "eth"


class TestSaveSlot:
    def test_default_slot_is_empty(self):
        assert SaveSlot().is_empty

    def test_filled_slot(self, state):
        assert not SaveSlot(game_state=state, last_saved=START.isoformat()).is_empty


# =============================================================================
# Config
# =============================================================================


class TestGameConfig:
    def test_defaults(self):
        config = GameConfig()
        assert config.scheduler.tick_seconds == 1.0
        assert config.scheduler.news_poll_seconds == 20.0
        assert config.scheduler.autosave_seconds == 300.0
        assert config.advisor.provider == "mock"
        assert config.persistence.num_slots == 10
        assert config.seed is None

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "game.yaml"
        path.write_text(
            "seed: 7\n"
            "scheduler:\n"
            "  tick_seconds: 0.5\n"
            "advisor:\n"
            "  provider: null\n",
            encoding="utf-8",
        )
        config = GameConfig.from_yaml(path)
        assert config.seed == 7
        assert config.scheduler.tick_seconds == 0.5
        assert config.scheduler.autosave_seconds == 300.0
        assert config.advisor.provider is None

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert GameConfig.from_yaml(path) == GameConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            GameConfig.from_yaml(tmp_path / "missing.yaml")

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Expected a YAML mapping"):
            GameConfig.from_yaml(path)

    def test_unknown_advisor_is_rejected(self):
        with pytest.raises(ValidationError):
            AdvisorConfig(provider="oracle")
