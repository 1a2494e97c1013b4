"""Mining yields and the rig hardware shop.

Yield model: a rig's hash rate is ``level*5 + gpus*10``; every in-game day it
mines ``hash_rate * 0.5`` dollars' worth of its assigned coin, converted to
coins at the coin's quoted price. Mining credits holdings only, never cash.
"""

from __future__ import annotations

import logging

from models.coin import Coin
from models.hardware import MiningRig
from models.rules import (
    DOLLARS_PER_HASH_DAY,
    GPU_COST,
    GPU_LIMIT_PER_PC,
    PC_COSTS,
    PC_MAX_LEVEL,
)
from models.state import GameState

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Yield
# ------------------------------------------------------------------

def compute_yield(pc: MiningRig, coin: Coin | None, elapsed_days: float) -> float:
    """Coins produced by *pc* mining *coin* over *elapsed_days*.

    Returns 0 for an idle rig (unowned, no GPU, no assignment) or when the
    coin is missing or has no positive price.
    """
    if not pc.is_active or coin is None or coin.price <= 0:
        return 0.0
    dollars = pc.hash_rate * DOLLARS_PER_HASH_DAY * elapsed_days
    return dollars / coin.price


def mine(pcs: list[MiningRig], coins: list[Coin], elapsed_days: float) -> dict[str, float]:
    """Accumulate the yield of every rig, keyed by coin id.

    Rigs mining the same coin add up; idle rigs contribute nothing.
    """
    by_id = {coin.id: coin for coin in coins}
    yields: dict[str, float] = {}
    for pc in pcs:
        if not pc.is_active:
            continue
        produced = compute_yield(pc, by_id.get(pc.mining_coin_id), elapsed_days)
        if produced > 0:
            yields[pc.mining_coin_id] = yields.get(pc.mining_coin_id, 0.0) + produced
    return yields


def merge_yields(holdings: dict[str, float], yields: dict[str, float]) -> dict[str, float]:
    """Return a new holdings mapping with *yields* added."""
    merged = dict(holdings)
    for coin_id, amount in yields.items():
        merged[coin_id] = merged.get(coin_id, 0.0) + amount
    return merged


# ------------------------------------------------------------------
# Hardware shop
# ------------------------------------------------------------------

def buy_or_upgrade_pc(state: GameState, pc_id: int) -> GameState:
    """Buy rig *pc_id* (level 0 -> 1) or upgrade it one level."""
    pc = state.rig(pc_id)
    if pc is None:
        return state.with_message(f"There is no PC {pc_id + 1}.")
    if pc.level >= PC_MAX_LEVEL:
        return state.with_message(f"PC {pc_id + 1} is already at the maximum level.")

    buying = pc.level == 0
    cost = PC_COSTS[pc.level]
    if not state.sandbox_mode and state.cash < cost:
        return state.with_message(
            f"Not enough cash to {'buy' if buying else 'upgrade'} PC. Cost: ${cost:,.0f}"
        )

    upgraded = pc.model_copy(update={"level": pc.level + 1})
    logger.debug("Rig %d now at level %d.", pc_id, upgraded.level)
    return state.model_copy(
        update={
            "pcs": _replace_rig(state.pcs, upgraded),
            "cash": state.cash if state.sandbox_mode else state.cash - cost,
            "message": (
                f"Successfully {'bought' if buying else 'upgraded'} PC {pc_id + 1} "
                f"to Level {upgraded.level}!"
            ),
        }
    )


def buy_gpu(state: GameState, pc_id: int) -> GameState:
    """Attach one GPU to an owned rig."""
    pc = state.rig(pc_id)
    if pc is None:
        return state.with_message(f"There is no PC {pc_id + 1}.")
    if pc.level == 0:
        return state.with_message(f"Buy PC {pc_id + 1} before adding GPUs.")
    if pc.gpus >= GPU_LIMIT_PER_PC:
        return state.with_message(
            f"PC {pc_id + 1} already has the maximum of {GPU_LIMIT_PER_PC} GPUs."
        )
    if not state.sandbox_mode and state.cash < GPU_COST:
        return state.with_message(f"Not enough cash to buy GPU. Cost: ${GPU_COST:,.0f}")

    upgraded = pc.model_copy(update={"gpus": pc.gpus + 1})
    return state.model_copy(
        update={
            "pcs": _replace_rig(state.pcs, upgraded),
            "cash": state.cash if state.sandbox_mode else state.cash - GPU_COST,
            "message": f"Successfully added a GPU to PC {pc_id + 1}!",
        }
    )


def set_mining_coin(state: GameState, pc_id: int, coin_id: str | None) -> GameState:
    """Point rig *pc_id* at *coin_id*, or stop it mining when ``None``."""
    pc = state.rig(pc_id)
    if pc is None:
        return state.with_message(f"There is no PC {pc_id + 1}.")

    if coin_id is None:
        message = f"PC {pc_id + 1} has stopped mining."
    else:
        coin = state.coin(coin_id)
        if coin is None:
            return state.with_message(f"Unknown coin '{coin_id}'.")
        if coin.stable:
            return state.with_message(f"{coin.name} cannot be mined.")
        message = f"PC {pc_id + 1} is now mining {coin.name}."

    updated = pc.model_copy(update={"mining_coin_id": coin_id})
    return state.model_copy(
        update={"pcs": _replace_rig(state.pcs, updated), "message": message}
    )


def _replace_rig(pcs: list[MiningRig], rig: MiningRig) -> list[MiningRig]:
    return [rig if pc.id == rig.id else pc for pc in pcs]
