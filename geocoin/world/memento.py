"""Memento store for dormant cell inventories.

When a cell leaves the visibility window its coins are copied here and the
live cell is emptied, so this store is the only record of a dormant cell's
inventory. Snapshots go in and come out as immutable values; nothing the
engine mutates is ever shared with the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from .grid import GridCoordinate
from .schemas import Coin


@dataclass(frozen=True)
class CellMemento:
    """Saved inventory of one cell at the moment it went dormant."""

    coord: GridCoordinate
    coins: Tuple[Coin, ...]
    next_serial: int

    @property
    def coin_count(self) -> int:
        return len(self.coins)


class MementoStore:
    """At most one snapshot per cell; later saves overwrite earlier ones.

    No eviction: the set of ever-visited cells is bounded by how far the player
    walks.
    """

    def __init__(self) -> None:
        self._snapshots: Dict[GridCoordinate, CellMemento] = {}

    def save(self, coord: GridCoordinate, coins: Iterable[Coin], next_serial: int) -> CellMemento:
        """Insert or overwrite the snapshot for ``coord``."""
        memento = CellMemento(coord=coord, coins=tuple(coins), next_serial=next_serial)
        self._snapshots[coord] = memento
        return memento

    def restore(self, coord: GridCoordinate) -> Optional[CellMemento]:
        """Return the snapshot for ``coord`` (kept in place) or None."""
        return self._snapshots.get(coord)

    def __contains__(self, coord: object) -> bool:
        return coord in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)
