"""Game configuration models, loaded from YAML.

Runtime knobs only: timer periods, the advisor backend, where saves go and
the random seed. Game rules (prices, costs, limits) live in ``models.rules``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field


class SchedulerConfig(BaseModel):
    """Periods of the session's timers, in real-time seconds."""

    tick_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Real-time period of one simulation tick.",
    )
    news_poll_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Real-time period of the external news poll.",
    )
    autosave_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Real-time period of the autosave timer.",
    )
    news_cooldown_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Minimum interval between two external news requests.",
    )


class AdvisorConfig(BaseModel):
    """Configuration for the news/advice provider."""

    provider: Literal["llm", "mock"] | None = Field(
        default="mock",
        description="Registered advisor name, or null to disable AI news and advice.",
    )
    llm_provider: str = Field(
        default="openai",
        description="LLM provider identifier for the 'llm' advisor, e.g. 'openai', 'anthropic'.",
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="Model name, e.g. 'gpt-4o-mini', 'claude-sonnet-4-20250514'.",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for the LLM.",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per advice request when the provider breaks its contract.",
    )


class PersistenceConfig(BaseModel):
    """Where and how many save slots are kept."""

    save_path: str = Field(
        default="saves/save_slots.json",
        description="JSON file holding all save slots.",
    )
    num_slots: int = Field(default=10, ge=1, description="Fixed number of save slots.")


class GameConfig(BaseModel):
    """Top-level configuration for a game session, loaded from YAML."""

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    advisor: AdvisorConfig = Field(default_factory=AdvisorConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    seed: int | None = Field(
        default=None,
        description="Seed for the shared random source; null for a fresh seed each run.",
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> GameConfig:
        """Load and validate a ``GameConfig`` from a YAML file.

        Raises ``FileNotFoundError`` if the file does not exist and
        ``ValueError`` if the content is not a valid YAML mapping.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError(
                f"Expected a YAML mapping in {path}, got {type(raw).__name__}."
            )

        return cls(**raw)
