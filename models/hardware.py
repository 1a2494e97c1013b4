"""Mining rig model."""

from pydantic import BaseModel, Field

from models.rules import (
    GPU_LIMIT_PER_PC,
    HASH_RATE_PER_GPU,
    HASH_RATE_PER_LEVEL,
    PC_MAX_LEVEL,
)


class MiningRig(BaseModel):
    """A PC slot. Level 0 means the slot has not been bought yet."""

    id: int
    level: int = Field(default=0, ge=0, le=PC_MAX_LEVEL)
    gpus: int = Field(default=0, ge=0, le=GPU_LIMIT_PER_PC)
    mining_coin_id: str | None = None

    @property
    def hash_rate(self) -> int:
        return self.level * HASH_RATE_PER_LEVEL + self.gpus * HASH_RATE_PER_GPU

    @property
    def is_active(self) -> bool:
        """True when the rig is owned, has a GPU and a coin to mine."""
        return self.level > 0 and self.gpus > 0 and self.mining_coin_id is not None
