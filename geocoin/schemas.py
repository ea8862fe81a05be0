"""
Pydantic schemas for the Geocoin game.

Design Philosophy:
- Settings are injected into the engine as a validated model (no global config reads)
- The persisted document uses the exact camelCase field names of the storage format;
  Python code works with snake_case attributes via aliases
- Input events are small models so the session queue carries validated data only
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from geocoin.config import Config
from geocoin.world import GridCoordinate, GridMapper


# ============================================================================
# Game Settings
# ============================================================================


class GameSettings(BaseModel):
    """World-generation and grid parameters for one running game.

    Defaults come from ``Config`` (environment variables). The grid convention
    must not change while a game is running, so the engine builds its mapper
    once from these settings.
    """

    tile_size: float = Field(Config.TILE_DEGREES, gt=0, description="Cell edge length in degrees")
    neighborhood_size: int = Field(
        Config.NEIGHBORHOOD_SIZE, ge=0, description="Visibility window radius in cells"
    )
    spawn_probability: float = Field(
        Config.SPAWN_PROBABILITY, ge=0.0, le=1.0, description="Chance a cell holds a cache"
    )
    max_initial_coins: int = Field(
        Config.MAX_INITIAL_COINS, ge=1, description="Upper bound on coins minted at discovery"
    )
    grid_mode: Literal["anchored", "absolute"] = Field(
        Config.GRID_MODE, description="Cell numbering convention"
    )
    anchor_lat: float = Field(Config.ANCHOR_LAT, description="Starting latitude")
    anchor_lng: float = Field(Config.ANCHOR_LNG, description="Starting longitude")
    deposit_batch: int = Field(
        Config.DEPOSIT_BATCH, ge=1, description="Coins moved by one deposit button press"
    )

    @property
    def anchor(self) -> Tuple[float, float]:
        return (self.anchor_lat, self.anchor_lng)

    def build_mapper(self) -> GridMapper:
        anchor = self.anchor if self.grid_mode == "anchored" else None
        return GridMapper(self.tile_size, anchor=anchor)


# ============================================================================
# Persisted State
# ============================================================================


def _check_cell_key(key: str) -> str:
    GridCoordinate.parse(key)
    return key


# Cell key "i,j"; anything else fails validation instead of reaching the engine
CellKey = Annotated[str, AfterValidator(_check_cell_key)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PlayerPosition(_CamelModel):
    lat: float
    lng: float


class CacheRecord(_CamelModel):
    """Stored inventory of one discovered cache.

    Collection always empties a cache, so its coins are the contiguous serial
    run ``[value - cacheCoins, value)``; the record rebuilds exact coin ids.
    """

    key: CellKey = Field(..., description="Cell key 'i,j'")
    lat: float = Field(..., description="South-west corner latitude")
    lng: float = Field(..., description="South-west corner longitude")
    cache_coins: int = Field(..., ge=0, alias="cacheCoins", description="Coins in the cache")
    value: int = Field(..., ge=0, description="Next serial the cache will mint")

    @model_validator(mode="after")
    def _coins_within_minted(self) -> "CacheRecord":
        if self.cache_coins > self.value:
            raise ValueError(
                f"Cache {self.key} holds {self.cache_coins} coins but has only minted {self.value}"
            )
        return self

    @property
    def coord(self) -> GridCoordinate:
        return GridCoordinate.parse(self.key)


class GameState(_CamelModel):
    """Complete persisted game: wallet, player position and discovered caches."""

    player_points: int = Field(0, ge=0, alias="playerPoints")
    player_coins: int = Field(0, ge=0, alias="playerCoins")
    total_deposited_coins: int = Field(0, ge=0, alias="totalDepositedCoins")
    player_position: PlayerPosition = Field(..., alias="playerPosition")
    caches: List[CacheRecord] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# ============================================================================
# Input Events
# ============================================================================


class Direction(str, Enum):
    """Movement buttons. Deltas are (di, dj) in cells; north increases latitude."""

    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

    @property
    def delta(self) -> Tuple[int, int]:
        return _DIRECTION_DELTAS[self]


_DIRECTION_DELTAS = {
    Direction.NORTH: (1, 0),
    Direction.SOUTH: (-1, 0),
    Direction.EAST: (0, 1),
    Direction.WEST: (0, -1),
}


class MoveEvent(BaseModel):
    """One press of a directional button."""

    direction: Direction


class PositionEvent(BaseModel):
    """A fix from the geolocation provider."""

    lat: float
    lng: float


class CollectEvent(BaseModel):
    key: CellKey = Field(..., description="Cell key of the cache to empty")


class DepositEvent(BaseModel):
    key: CellKey = Field(..., description="Cell key of the cache to refill")
    amount: int = Field(Config.DEPOSIT_BATCH, ge=0, description="Requested coin count")


class ResetEvent(BaseModel):
    """Discard all progress and start a fresh world at the anchor."""


class SensorToggleEvent(BaseModel):
    enabled: Optional[bool] = Field(None, description="Force on/off; None flips the current state")


class StopEvent(BaseModel):
    """Ends ``GameSession.run``."""
