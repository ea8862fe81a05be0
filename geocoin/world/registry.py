"""Flyweight registry of grid cells.

Exactly one ``Cell`` exists per ``GridCoordinate`` for the life of a registry.
Cells are created lazily on first lookup and never removed; a dormant cell
keeps its identity (and serial counter) while its coins sit in the memento
store.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from .grid import GridCoordinate
from .schemas import Coin


class Cell:
    """Mutable coin inventory for one grid coordinate.

    Inventory order is mint order. ``next_serial`` only ever grows, so a serial
    handed out once is never handed out again by the same cell.
    """

    def __init__(self, coord: GridCoordinate):
        self.coord = coord
        self.coins: List[Coin] = []
        self.next_serial = 0

    @property
    def label(self) -> str:
        return self.coord.key

    @property
    def coin_count(self) -> int:
        return len(self.coins)

    @property
    def coin_ids(self) -> List[str]:
        return [coin.coin_id for coin in self.coins]

    def mint(self, count: int) -> List[Coin]:
        """Append ``count`` fresh coins with ascending serials and return them."""
        if count < 0:
            raise ValueError(f"Cannot mint a negative number of coins ({count})")
        minted = [
            Coin(i=self.coord.i, j=self.coord.j, serial=self.next_serial + offset)
            for offset in range(count)
        ]
        self.next_serial += count
        self.coins.extend(minted)
        return minted

    def take_all(self) -> List[Coin]:
        """Remove and return the whole inventory."""
        taken, self.coins = self.coins, []
        return taken

    def load(self, coins: Iterable[Coin], next_serial: int) -> None:
        """Replace the inventory with a copy of ``coins``."""
        self.coins = list(coins)
        highest = max((coin.serial for coin in self.coins), default=-1)
        # Never rewind the counter below a serial that is already in circulation
        self.next_serial = max(next_serial, highest + 1, self.next_serial)

    def clear(self) -> None:
        self.coins = []

    def __repr__(self) -> str:
        return f"Cell({self.label}, coins={self.coin_count}, next_serial={self.next_serial})"


class CellRegistry:
    """Owning map from coordinate to its single ``Cell``.

    Consumers hold coordinates, not cells; ``get_or_create`` hands back the same
    instance for equal coordinates every time.
    """

    def __init__(self) -> None:
        self._cells: Dict[GridCoordinate, Cell] = {}

    def get_or_create(self, coord: GridCoordinate) -> Cell:
        cell = self._cells.get(coord)
        if cell is None:
            cell = Cell(coord)
            self._cells[coord] = cell
        return cell

    def get(self, coord: GridCoordinate) -> Optional[Cell]:
        """Return the registered cell without creating one."""
        return self._cells.get(coord)

    def __contains__(self, coord: object) -> bool:
        return coord in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells.values())
