"""Save slot model."""

from pydantic import BaseModel

from models.state import GameState


class SaveSlot(BaseModel):
    """One persistence slot: a full game snapshot (or empty) and when it was saved."""

    game_state: GameState | None = None
    last_saved: str | None = None  # ISO 8601 wall-clock time

    @property
    def is_empty(self) -> bool:
        return self.game_state is None
