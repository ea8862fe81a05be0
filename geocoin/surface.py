"""Map surface contract and the listener that keeps it in sync with the engine.

The engine knows nothing about drawing. ``SurfaceBinder`` listens to engine
events and translates them into the three calls a map needs: draw a rectangle,
remove a rectangle, bind a popup with collect/deposit buttons. ``AsciiSurface``
is a terminal/test implementation of the contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .engine import CacheEngine, EngineListener
from .wallet import Wallet
from .world import Bounds, Cell, GridCoordinate, render_ascii_window


@dataclass
class CachePopup:
    """Interactive popup bound to one cache rectangle."""

    key: str
    coin_count: int
    lines: List[str]
    on_collect: Callable[[], None]
    on_deposit: Callable[[Optional[int]], None]

    def collect(self) -> None:
        self.on_collect()

    def deposit(self, amount: Optional[int] = None) -> None:
        """Press the deposit button; ``None`` uses the configured batch size."""
        self.on_deposit(amount)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class MapSurface(ABC):
    """Whatever displays caches to the player."""

    @abstractmethod
    def draw_rectangle(self, key: str, bounds: Bounds) -> None:
        pass

    @abstractmethod
    def remove_rectangle(self, key: str) -> None:
        pass

    @abstractmethod
    def bind_popup(self, key: str, popup: CachePopup) -> None:
        pass

    @abstractmethod
    def update_status(self, text: str) -> None:
        pass


class SurfaceBinder(EngineListener):
    """Mirror engine activity onto a ``MapSurface``.

    Args:
        surface: Target surface
        engine: Engine whose mapper supplies rectangle bounds
        on_collect: Called with a cache key when its collect button is pressed
        on_deposit: Called with (key, amount or None) when deposit is pressed
    """

    def __init__(
        self,
        surface: MapSurface,
        engine: CacheEngine,
        *,
        on_collect: Callable[[str], None],
        on_deposit: Callable[[str, Optional[int]], None],
    ):
        self.surface = surface
        self.engine = engine
        self.on_collect = on_collect
        self.on_deposit = on_deposit

    def on_activate(self, cell: Cell) -> None:
        self.surface.draw_rectangle(cell.label, self.engine.mapper.to_bounds(cell.coord))
        self.surface.bind_popup(cell.label, self._popup_for(cell))

    def on_deactivate(self, coord: GridCoordinate) -> None:
        self.surface.remove_rectangle(coord.key)

    def on_inventory_changed(self, cell: Cell) -> None:
        self.surface.bind_popup(cell.label, self._popup_for(cell))

    def on_wallet_changed(self, wallet: Wallet) -> None:
        self.surface.update_status(wallet.status_line())

    def _popup_for(self, cell: Cell) -> CachePopup:
        key = cell.label
        lines = [f'Cache at "{key}"', f"Coins: {cell.coin_count}"]
        lines.extend(f"  {coin_id}" for coin_id in cell.coin_ids)
        return CachePopup(
            key=key,
            coin_count=cell.coin_count,
            lines=lines,
            on_collect=lambda: self.on_collect(key),
            on_deposit=lambda amount: self.on_deposit(key, amount),
        )


@dataclass
class AsciiSurface(MapSurface):
    """In-memory surface that can print the window as text."""

    rectangles: Dict[str, Bounds] = field(default_factory=dict)
    popups: Dict[str, CachePopup] = field(default_factory=dict)
    status: str = "No points yet..."

    def draw_rectangle(self, key: str, bounds: Bounds) -> None:
        self.rectangles[key] = bounds

    def remove_rectangle(self, key: str) -> None:
        self.rectangles.pop(key, None)
        self.popups.pop(key, None)

    def bind_popup(self, key: str, popup: CachePopup) -> None:
        self.popups[key] = popup

    def update_status(self, text: str) -> None:
        self.status = text

    def render(self, center: GridCoordinate, radius: int) -> str:
        caches = {
            GridCoordinate.parse(key): popup.coin_count for key, popup in self.popups.items()
        }
        window = render_ascii_window(center, radius=radius, caches=caches)
        return f"{window}\n{self.status}"
