"""
Cache engine: the per-cell state machine behind the game.

Owns one explicit ``WorldRecord`` (cell registry, memento store, wallet, active
set, player position). No module-level state; everything a running game needs
hangs off the engine instance that the session drives.

Cell lifecycle:
1. Unvisited -> Active: the cell enters the visibility window, has no memento, and
   passes the spawn test. Its inventory is minted from the deterministic generator.
2. Active -> Dormant: the cell leaves the window. Its inventory is copied into the
   memento store and the live cell is emptied.
3. Dormant -> Active: the cell re-enters the window. The memento is restored
   verbatim, so collects and deposits survive leaving view.
A cell that fails the spawn test stays Unvisited for the life of the engine.

The engine is synchronous and not thread-safe. Callers serialize every mutation
through one owner (see ``GameSession``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Set, Tuple, Union

from .config import Config
from .logging_utils import log_deterministic, log_player
from .schemas import CacheRecord, Direction, GameSettings, GameState, PlayerPosition
from .wallet import Wallet
from .world import (
    Cell,
    CellRegistry,
    Coin,
    GridCoordinate,
    LuckFunction,
    MementoStore,
    initial_coin_count,
    luck,
    spawns,
    visibility_window,
)


# =============================
# Module-level Exceptions
# =============================


class CellNotActiveError(Exception):
    """Raised when collect/deposit targets a cell that is not currently active."""

    def __init__(self, *, coord: GridCoordinate, state: "CellState") -> None:
        self.coord = coord
        self.state = state
        message = (
            f"Cache at {coord.key} is {state.value}, not active.\n\n"
            "Only caches inside the player's visibility window can be used.\n"
            "Remediation tips:\n"
            "  - Move the player next to the cache first\n"
            "  - Use engine.active_cells() to list usable caches"
        )
        super().__init__(message)


class CellState(str, Enum):
    UNVISITED = "unvisited"
    ACTIVE = "active"
    DORMANT = "dormant"


class EngineListener:
    """Optional hooks for whatever presents the world (map surface, tests, logs).

    Every method is a no-op; override the ones you need.
    """

    def on_activate(self, cell: Cell) -> None:
        pass

    def on_deactivate(self, coord: GridCoordinate) -> None:
        pass

    def on_inventory_changed(self, cell: Cell) -> None:
        pass

    def on_wallet_changed(self, wallet: Wallet) -> None:
        pass


@dataclass
class WindowDiff:
    """Outcome of one visibility-window recompute."""

    position: Tuple[float, float]
    center: GridCoordinate
    activated: List[GridCoordinate] = field(default_factory=list)
    deactivated: List[GridCoordinate] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.activated or self.deactivated)


@dataclass
class WorldRecord:
    """All mutable state of one game world."""

    position: Tuple[float, float]
    registry: CellRegistry = field(default_factory=CellRegistry)
    mementos: MementoStore = field(default_factory=MementoStore)
    wallet: Wallet = field(default_factory=Wallet)
    active: Set[GridCoordinate] = field(default_factory=set)
    # Cells whose spawn test failed; they never become active
    barren: Set[GridCoordinate] = field(default_factory=set)


class CacheEngine:
    """
    Activate and deactivate caches as the player moves; collect and deposit coins.

    Args:
        settings: Grid and generation parameters (defaults from Config)
        luck_fn: Deterministic generator; inject a known function in tests
        listeners: Optional EngineListener hooks
        verbose: Log every window diff (defaults to Config.VERBOSE)
    """

    def __init__(
        self,
        settings: Optional[GameSettings] = None,
        *,
        luck_fn: LuckFunction = luck,
        listeners: Optional[Iterable[EngineListener]] = None,
        verbose: Optional[bool] = None,
    ):
        self.settings = settings or GameSettings()
        self.mapper = self.settings.build_mapper()
        self.luck_fn = luck_fn
        self.listeners: List[EngineListener] = list(listeners or [])
        self.verbose = Config.VERBOSE if verbose is None else verbose
        self.world = WorldRecord(position=self.settings.anchor)

    # -----------------------------
    # Queries
    # -----------------------------

    @property
    def wallet(self) -> Wallet:
        return self.world.wallet

    @property
    def player_position(self) -> Tuple[float, float]:
        return self.world.position

    @property
    def player_cell(self) -> GridCoordinate:
        return self.mapper.to_grid(*self.world.position)

    def add_listener(self, listener: EngineListener) -> None:
        self.listeners.append(listener)

    def state_of(self, coord: GridCoordinate) -> CellState:
        if coord in self.world.active:
            return CellState.ACTIVE
        if coord in self.world.mementos:
            return CellState.DORMANT
        return CellState.UNVISITED

    def active_cells(self) -> List[GridCoordinate]:
        """Active coordinates in row-major order."""
        return sorted(self.world.active)

    def cell(self, coord: GridCoordinate) -> Cell:
        """Return the live cell for an active coordinate."""
        self._require_active(coord)
        return self.world.registry.get_or_create(coord)

    def inventory(self, coord: GridCoordinate) -> List[Coin]:
        """Copy of the coins a cell currently holds, wherever they are stored."""
        if coord in self.world.active:
            return list(self.world.registry.get_or_create(coord).coins)
        memento = self.world.mementos.restore(coord)
        if memento is not None:
            return list(memento.coins)
        return []

    # -----------------------------
    # Movement
    # -----------------------------

    def refresh(self) -> WindowDiff:
        """Recompute the window at the current position."""
        return self.move_to(*self.world.position)

    def move(self, direction: Union[Direction, str]) -> WindowDiff:
        """Step one tile in ``direction``."""
        di, dj = Direction(direction).delta
        lat, lng = self.world.position
        tile = self.settings.tile_size
        return self.move_to(lat + di * tile, lng + dj * tile)

    def move_to(self, lat: float, lng: float) -> WindowDiff:
        """Place the player at (lat, lng) and apply the visibility-window diff."""
        self.world.position = (lat, lng)
        center = self.mapper.to_grid(lat, lng)
        window = visibility_window(center, self.settings.neighborhood_size)
        in_window = set(window)

        diff = WindowDiff(position=(lat, lng), center=center)

        # Snapshot leaving cells before anything new is minted
        for coord in sorted(self.world.active - in_window):
            self._deactivate(coord)
            diff.deactivated.append(coord)

        for coord in window:
            if coord in self.world.active:
                continue
            if self._activate(coord):
                diff.activated.append(coord)

        if self.verbose and diff.changed:
            log_deterministic(
                f"Window at {center.key}: +{len(diff.activated)} / -{len(diff.deactivated)} caches "
                f"({len(self.world.active)} active)"
            )
        return diff

    def _activate(self, coord: GridCoordinate) -> bool:
        memento = self.world.mementos.restore(coord)
        if memento is not None:
            cell = self.world.registry.get_or_create(coord)
            cell.load(memento.coins, memento.next_serial)
        else:
            if coord in self.world.barren:
                return False
            if not spawns(coord, self.settings.spawn_probability, self.luck_fn):
                self.world.barren.add(coord)
                return False
            cell = self.world.registry.get_or_create(coord)
            cell.mint(initial_coin_count(coord, self.settings.max_initial_coins, self.luck_fn))

        self.world.active.add(coord)
        for listener in self.listeners:
            listener.on_activate(cell)
        return True

    def _deactivate(self, coord: GridCoordinate) -> None:
        cell = self.world.registry.get_or_create(coord)
        self.world.mementos.save(coord, cell.coins, cell.next_serial)
        cell.clear()
        self.world.active.discard(coord)
        for listener in self.listeners:
            listener.on_deactivate(coord)

    # -----------------------------
    # Coin transfer
    # -----------------------------

    def collect(self, coord: GridCoordinate) -> int:
        """Empty an active cache into the wallet; returns the coin count moved."""
        cell = self.cell(coord)
        taken = cell.take_all()
        if not taken:
            return 0

        self.wallet.credit(len(taken))
        log_player(f"Collected {len(taken)} coin(s) from cache at ({coord.i}, {coord.j}).")
        self._notify_transfer(cell)
        return len(taken)

    def deposit(self, coord: GridCoordinate, amount: int) -> int:
        """Move up to ``amount`` wallet coins into an active cache as fresh coins.

        The request is clamped to the wallet balance; returns the amount moved.
        """
        cell = self.cell(coord)
        moved = self.wallet.debit(amount)
        if moved == 0:
            return 0

        cell.mint(moved)
        log_player(f"Deposited {moved} coin(s) into cache at ({coord.i}, {coord.j}).")
        self._notify_transfer(cell)
        return moved

    def _notify_transfer(self, cell: Cell) -> None:
        for listener in self.listeners:
            listener.on_inventory_changed(cell)
            listener.on_wallet_changed(self.wallet)

    def _require_active(self, coord: GridCoordinate) -> None:
        if coord not in self.world.active:
            raise CellNotActiveError(coord=coord, state=self.state_of(coord))

    # -----------------------------
    # Whole-world operations
    # -----------------------------

    def snapshot(self) -> GameState:
        """Serializable copy of the wallet, position and every discovered cache."""
        caches: List[CacheRecord] = []
        for cell in sorted(self.world.registry, key=lambda c: c.coord):
            coord = cell.coord
            if coord in self.world.active:
                count, next_serial = cell.coin_count, cell.next_serial
            else:
                memento = self.world.mementos.restore(coord)
                if memento is None:
                    continue
                count, next_serial = memento.coin_count, memento.next_serial
            bounds = self.mapper.to_bounds(coord)
            caches.append(
                CacheRecord(
                    key=coord.key,
                    lat=bounds.lat_min,
                    lng=bounds.lng_min,
                    cache_coins=count,
                    value=next_serial,
                )
            )

        lat, lng = self.world.position
        return GameState(
            player_points=self.wallet.points,
            player_coins=self.wallet.coins,
            total_deposited_coins=self.wallet.total_deposited,
            player_position=PlayerPosition(lat=lat, lng=lng),
            caches=caches,
        )

    def restore(self, state: GameState) -> WindowDiff:
        """Replace the world with a persisted one and activate around the player."""
        self._discard_world()
        world = WorldRecord(
            position=(state.player_position.lat, state.player_position.lng),
            wallet=Wallet(
                coins=state.player_coins,
                points=state.player_points,
                total_deposited=state.total_deposited_coins,
            ),
        )
        # Every stored cache comes back dormant; the refresh below wakes the nearby ones
        for record in state.caches:
            coord = record.coord
            first_serial = record.value - record.cache_coins
            coins = [
                Coin(i=coord.i, j=coord.j, serial=serial)
                for serial in range(first_serial, record.value)
            ]
            world.registry.get_or_create(coord)
            world.mementos.save(coord, coins, record.value)

        self.world = world
        self._announce_wallet()
        return self.refresh()

    def reset(self) -> WindowDiff:
        """Throw away all progress and start again at the anchor."""
        self._discard_world()
        self.world = WorldRecord(position=self.settings.anchor)
        self._announce_wallet()
        return self.refresh()

    def _discard_world(self) -> None:
        for coord in sorted(self.world.active):
            for listener in self.listeners:
                listener.on_deactivate(coord)
        self.world.active.clear()

    def _announce_wallet(self) -> None:
        for listener in self.listeners:
            listener.on_wallet_changed(self.wallet)
