#!/usr/bin/env python3
"""CLI entrypoint for the headless crypto market simulator.

Usage::

    python run_game.py --config config/example.yaml --slot 1 --ticks 60
    python run_game.py --slot 2 --new --sandbox --speed 7 --ticks 300

The game loads a YAML configuration file (defaults apply when omitted),
opens a save slot, runs the session's timers for the requested number of
ticks (or until the game is over), and saves the result back to the slot.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys

from advisors.registry import create_advisor
from models.config import GameConfig
from models.rules import TIME_SPEEDS
from models.state import GameState
from simulation.engine import GameEngine
from simulation.persistence import SaveSlotStore
from simulation.session import GameSession


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the crypto market simulator without a UI.",
    )
    parser.add_argument(
        "--config",
        default=None,
        type=str,
        help="Path to the YAML configuration file (default: built-in defaults).",
    )
    parser.add_argument(
        "--slot",
        default=1,
        type=int,
        help="Save slot to play, starting at 1 (default: 1).",
    )
    parser.add_argument(
        "--new",
        action="store_true",
        help="Start a new game in the slot even if it holds a save.",
    )
    parser.add_argument(
        "--sandbox",
        action="store_true",
        help="Start the new game in sandbox mode (unlimited funds).",
    )
    parser.add_argument(
        "--ticks",
        default=60,
        type=int,
        help="Number of ticks to run before saving and exiting (default: 60).",
    )
    parser.add_argument(
        "--speed",
        default=None,
        type=int,
        choices=sorted(TIME_SPEEDS),
        help="In-game days per tick.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    return parser.parse_args()


def _setup_logging(level: str) -> None:
    """Configure root logger with a clean format."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


async def _main() -> int:
    args = _parse_args()
    _setup_logging(args.log_level)

    logger = logging.getLogger(__name__)
    if args.config:
        logger.info("Loading config from '%s'...", args.config)
        config = GameConfig.from_yaml(args.config)
    else:
        config = GameConfig()

    store = SaveSlotStore(config.persistence.save_path, config.persistence.num_slots)
    slot_index = args.slot - 1
    engine = GameEngine(random.Random(config.seed))

    state = None if args.new else store.load_game(slot_index)
    if state is None:
        state = engine.new_game(sandbox=args.sandbox)
        logger.info(
            "Starting a new %s game in slot %d.",
            "sandbox" if args.sandbox else "normal",
            args.slot,
        )
    else:
        logger.info("Loaded slot %d at %s.", args.slot, state.game_date)

    def _on_game_over(final: GameState) -> None:
        logger.warning(
            "Game Over! You ran out of cash on %s (tick %d).", final.game_date, final.time_step
        )

    session = GameSession(
        state,
        engine,
        config=config,
        advisor=create_advisor(config.advisor, random.Random(config.seed)),
        store=store,
        slot_index=slot_index,
        on_game_over=_on_game_over,
    )
    if args.speed is not None:
        session.set_speed(args.speed)

    final = await session.run(max_ticks=args.ticks)
    if final is None:
        return 1

    session.save()
    logger.info(
        "Slot %d saved at %s: cash $%.2f, net worth $%.2f, holdings %s",
        args.slot,
        final.game_date,
        final.cash,
        final.net_worth,
        {k: round(v, 6) for k, v in final.holdings.items() if v},
    )
    return 0


def main() -> int:
    return asyncio.run(_main())


if __name__ == "__main__":
    sys.exit(main())
