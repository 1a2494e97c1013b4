"""Advisor registry: maps config strings to AdvisorProvider subclasses.

Usage::

    from advisors.registry import create_advisor

    advisor = create_advisor(advisor_config, random.Random(seed))
"""

from __future__ import annotations

import random
from typing import Type

from advisors.base import AdvisorProvider
from models.config import AdvisorConfig

# ---------------------------------------------------------------------------
# Registry mapping
# ---------------------------------------------------------------------------
_REGISTRY: dict[str, Type[AdvisorProvider]] = {}


def register(name: str):
    """Decorator to register an ``AdvisorProvider`` subclass under *name*."""

    def _decorator(cls: Type[AdvisorProvider]) -> Type[AdvisorProvider]:
        if name in _REGISTRY:
            raise ValueError(f"Advisor '{name}' is already registered.")
        _REGISTRY[name] = cls
        return cls

    return _decorator


def create_advisor(
    config: AdvisorConfig, rng: random.Random | None = None
) -> AdvisorProvider | None:
    """Instantiate the advisor specified in *config*, drawing from *rng*.

    Returns ``None`` when ``config.provider`` is unset (AI features off).
    Raises ``KeyError`` if the name is not registered.
    """
    if config.provider is None:
        return None

    # Lazy-import concrete implementations so they self-register.
    _ensure_builtins_loaded()

    key = config.provider
    if key not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY)) or "(none)"
        raise KeyError(f"Unknown advisor '{key}'. Available: {available}.")
    return _REGISTRY[key](config, rng)


def _ensure_builtins_loaded() -> None:
    """Import built-in advisor modules so their ``@register`` calls execute."""
    import advisors.llm_advisor  # noqa: F401
    import advisors.mock_advisor  # noqa: F401
