"""Save-slot persistence: a fixed array of game snapshots in one JSON file.

The file layout is a JSON array with exactly ``num_slots`` entries::

    [
      {"game_state": {...}, "last_saved": "2025-03-15T10:00:00+00:00"},
      {"game_state": null, "last_saved": null},
      ...
    ]

The engine never sees this format; it only hands ``GameState`` objects in
and gets them back out.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from models.save import SaveSlot
from models.state import GameState

logger = logging.getLogger(__name__)


class SaveSlotStore:
    """Loads and writes the save-slot array at *path*.

    ``load_slots`` always returns exactly ``num_slots`` entries: a missing
    file yields empty slots, an unreadable file is logged and treated as
    empty, and a single invalid slot is blanked without touching the others.
    """

    def __init__(self, path: str | Path, num_slots: int = 10) -> None:
        self._path = Path(path)
        self._num_slots = num_slots

    # ------------------------------------------------------------------
    # Slot array
    # ------------------------------------------------------------------

    def load_slots(self) -> list[SaveSlot]:
        """Read every slot from disk.

        Slots are validated one by one: a slot that fails validation is
        logged and comes back empty, the others are kept.
        """
        if not self._path.exists():
            return self._empty_slots()

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Error loading save slots from %s: %s", self._path, exc)
            return self._empty_slots()
        if not isinstance(raw, list):
            logger.error(
                "Error loading save slots from %s: expected a JSON array, got %s.",
                self._path,
                type(raw).__name__,
            )
            return self._empty_slots()

        slots = []
        for index, entry in enumerate(raw[: self._num_slots]):
            try:
                slots.append(SaveSlot.model_validate(entry))
            except ValidationError as exc:
                logger.error("Discarding unreadable save slot %d: %s", index + 1, exc)
                slots.append(SaveSlot())
        slots.extend(SaveSlot() for _ in range(self._num_slots - len(slots)))
        return slots

    def save_slots(self, slots: list[SaveSlot]) -> None:
        """Write the full slot array to disk."""
        if len(slots) != self._num_slots:
            raise ValueError(f"Expected {self._num_slots} slots, got {len(slots)}.")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        _write_json(self._path, [slot.model_dump(mode="json") for slot in slots])

    # ------------------------------------------------------------------
    # Single-slot helpers
    # ------------------------------------------------------------------

    def save_game(self, index: int, state: GameState, now: datetime | None = None) -> SaveSlot:
        """Store *state* in slot *index*, stamped with the wall-clock time."""
        self._check_index(index)
        slots = self.load_slots()
        saved_at = (now or datetime.now(timezone.utc)).isoformat()
        slots[index] = SaveSlot(game_state=state, last_saved=saved_at)
        self.save_slots(slots)
        logger.info("Saved game to slot %d.", index + 1)
        return slots[index]

    def load_game(self, index: int) -> GameState | None:
        """Return the game in slot *index*, or ``None`` if the slot is empty."""
        self._check_index(index)
        return self.load_slots()[index].game_state

    def delete_slot(self, index: int) -> None:
        self._check_index(index)
        slots = self.load_slots()
        slots[index] = SaveSlot()
        self.save_slots(slots)
        logger.info("Deleted save in slot %d.", index + 1)

    @property
    def num_slots(self) -> int:
        return self._num_slots

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _empty_slots(self) -> list[SaveSlot]:
        return [SaveSlot() for _ in range(self._num_slots)]

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self._num_slots:
            raise IndexError(f"Save slot {index} out of range (0..{self._num_slots - 1}).")


def _write_json(path: Path, data: Any) -> None:
    """Write *data* as pretty-printed JSON to *path*."""
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
