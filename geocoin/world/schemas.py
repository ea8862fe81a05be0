"""Pydantic value types for cell inventories.

Coins are plain frozen values. They live only inside a cell's inventory or a
memento snapshot, so handing them across component boundaries never aliases
mutable state.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .grid import GridCoordinate


class Coin(BaseModel):
    """One collectible minted by the cache at (i, j).

    ``serial`` is unique within the minting cell and increases with every coin
    that cell mints.
    """

    model_config = ConfigDict(frozen=True)

    i: int = Field(..., description="Row of the minting cell")
    j: int = Field(..., description="Column of the minting cell")
    serial: int = Field(..., ge=0, description="Per-cell mint sequence number")

    @property
    def origin(self) -> GridCoordinate:
        return GridCoordinate(self.i, self.j)

    @property
    def coin_id(self) -> str:
        """Display identifier, e.g. ``"3:-7#2"``."""
        return f"{self.i}:{self.j}#{self.serial}"

    def __str__(self) -> str:
        return self.coin_id
