"""
Geocoin - location-based coin collecting on a deterministic grid.

The player walks a flat degree grid; nearby cells may hold caches of coins that
can be collected into a wallet and deposited back. Which cells hold caches, and
how many coins they start with, is derived from a seeded hash, so the world never
has to be stored until the player changes it.

No global state. No file I/O required. Persistence and display are injected.
"""

__version__ = "0.1.0"

# Main game components
from .engine import (
    CacheEngine,
    CellNotActiveError,
    CellState,
    EngineListener,
    WindowDiff,
    WorldRecord,
)
from .session import GameSession, LocationProvider, ScriptedLocationProvider
from .wallet import Wallet

# Core interfaces
from .persistence import (
    PersistenceStrategy,
    InMemoryPersistence,
    JsonPersistence,
    StateGateway,
)
from .surface import AsciiSurface, CachePopup, MapSurface, SurfaceBinder

# Grid tier
from .world import (
    Bounds,
    Cell,
    CellMemento,
    CellRegistry,
    Coin,
    GridCoordinate,
    GridMapper,
    MementoStore,
    luck,
    render_ascii_window,
    visibility_window,
)

# Schemas
from .schemas import (
    GameSettings,
    GameState,
    CacheRecord,
    PlayerPosition,
    Direction,
    MoveEvent,
    PositionEvent,
    CollectEvent,
    DepositEvent,
    ResetEvent,
    SensorToggleEvent,
    StopEvent,
)

__all__ = [
    # Main classes
    "CacheEngine",
    "GameSession",
    "Wallet",
    "CellState",
    "EngineListener",
    "WindowDiff",
    "WorldRecord",
    "CellNotActiveError",
    # Core interfaces
    "PersistenceStrategy",
    "InMemoryPersistence",
    "JsonPersistence",
    "StateGateway",
    "MapSurface",
    "AsciiSurface",
    "CachePopup",
    "SurfaceBinder",
    "LocationProvider",
    "ScriptedLocationProvider",
    # Grid tier
    "Bounds",
    "Cell",
    "CellMemento",
    "CellRegistry",
    "Coin",
    "GridCoordinate",
    "GridMapper",
    "MementoStore",
    "luck",
    "render_ascii_window",
    "visibility_window",
    # Schemas
    "GameSettings",
    "GameState",
    "CacheRecord",
    "PlayerPosition",
    "Direction",
    "MoveEvent",
    "PositionEvent",
    "CollectEvent",
    "DepositEvent",
    "ResetEvent",
    "SensorToggleEvent",
    "StopEvent",
]
