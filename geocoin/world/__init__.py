"""Grid, generation and cell storage tier for Geocoin."""

from .grid import Bounds, GridCoordinate, GridMapper, visibility_window
from .luck import (
    LuckFunction,
    coin_count_key,
    initial_coin_count,
    luck,
    spawn_key,
    spawns,
)
from .schemas import Coin
from .registry import Cell, CellRegistry
from .memento import CellMemento, MementoStore
from .helpers import render_ascii_window

__all__ = [
    "Bounds",
    "GridCoordinate",
    "GridMapper",
    "visibility_window",
    "LuckFunction",
    "luck",
    "spawn_key",
    "coin_count_key",
    "spawns",
    "initial_coin_count",
    "Coin",
    "Cell",
    "CellRegistry",
    "CellMemento",
    "MementoStore",
    "render_ascii_window",
]
