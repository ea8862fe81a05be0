"""
Game session: the single owner of a running game.

Every input (movement buttons, popup buttons, geolocation fixes, reset, sensor
toggle) becomes an event on one asyncio queue. ``run()`` takes events one at a
time and each handler runs to completion before the next starts, so the engine,
memento store and wallet never see interleaved mutations and no locks are
needed around them.

After each mutating event the session schedules a save of the whole game as a
background task. Saves are serialized among themselves, never awaited by the
handler, and a failed save never fails the event that triggered it.
"""

import asyncio
import contextlib
from abc import ABC, abstractmethod
from typing import AsyncIterator, Iterable, List, Optional, Set, Tuple, Union

from .engine import CacheEngine, CellNotActiveError, WindowDiff
from .logging_utils import log_error, log_info, log_success
from .persistence import StateGateway
from .schemas import (
    CollectEvent,
    DepositEvent,
    MoveEvent,
    PositionEvent,
    ResetEvent,
    SensorToggleEvent,
    StopEvent,
)
from .surface import MapSurface, SurfaceBinder
from .world import GridCoordinate

GameEvent = Union[
    MoveEvent,
    PositionEvent,
    CollectEvent,
    DepositEvent,
    ResetEvent,
    SensorToggleEvent,
    StopEvent,
]


class LocationProvider(ABC):
    """Source of asynchronous position fixes (GPS, browser geolocation, replay)."""

    @abstractmethod
    def positions(self) -> AsyncIterator[Tuple[float, float]]:
        """Yield (lat, lng) fixes until the provider is exhausted or cancelled."""


class ScriptedLocationProvider(LocationProvider):
    """Replays a fixed list of fixes, optionally spaced ``interval`` seconds apart."""

    def __init__(self, fixes: Iterable[Tuple[float, float]], interval: float = 0.0):
        self.fixes: List[Tuple[float, float]] = list(fixes)
        self.interval = interval

    async def positions(self) -> AsyncIterator[Tuple[float, float]]:
        for lat, lng in self.fixes:
            await asyncio.sleep(self.interval)
            yield lat, lng


class GameSession:
    """
    Drive a CacheEngine from a queue of input events.

    Args:
        engine: The game engine (defaults to a fresh CacheEngine)
        gateway: Optional StateGateway; without it nothing is saved
        surface: Optional MapSurface kept in sync through a SurfaceBinder
        location_provider: Optional geolocation source used while the sensor is on
    """

    def __init__(
        self,
        engine: Optional[CacheEngine] = None,
        *,
        gateway: Optional[StateGateway] = None,
        surface: Optional[MapSurface] = None,
        location_provider: Optional[LocationProvider] = None,
    ):
        self.engine = engine or CacheEngine()
        self.gateway = gateway
        self.surface = surface
        self.location_provider = location_provider
        self.queue: "asyncio.Queue[GameEvent]" = asyncio.Queue()

        self._pending_saves: Set[asyncio.Task] = set()
        self._save_lock = asyncio.Lock()
        self._sensor_task: Optional[asyncio.Task] = None

        if surface is not None:
            self.engine.add_listener(
                SurfaceBinder(
                    surface,
                    self.engine,
                    on_collect=lambda key: self.dispatch_nowait(CollectEvent(key=key)),
                    on_deposit=lambda key, amount: self.dispatch_nowait(
                        self._deposit_event(key, amount)
                    ),
                )
            )

    @property
    def sensor_enabled(self) -> bool:
        return self._sensor_task is not None and not self._sensor_task.done()

    # -----------------------------
    # Lifecycle
    # -----------------------------

    async def start(self) -> WindowDiff:
        """Load the saved game if there is one, then activate the player's window."""
        state = await self.gateway.load() if self.gateway is not None else None
        if state is not None:
            diff = self.engine.restore(state)
        else:
            diff = self.engine.refresh()

        if self.surface is not None:
            self.surface.update_status(self.engine.wallet.status_line())
        log_info(
            f"Game started at cell {diff.center.key} with "
            f"{len(self.engine.active_cells())} cache(s) in view."
        )
        return diff

    async def close(self) -> None:
        """Stop the sensor, flush pending saves and write the final state."""
        await self._stop_sensor()
        if self._pending_saves:
            await asyncio.gather(*self._pending_saves)
        if self.gateway is not None:
            async with self._save_lock:
                if await self.gateway.save(self.engine.snapshot()):
                    log_success("Game saved.")

    # -----------------------------
    # Event handling
    # -----------------------------

    async def dispatch(self, event: GameEvent) -> None:
        await self.queue.put(event)

    def dispatch_nowait(self, event: GameEvent) -> None:
        self.queue.put_nowait(event)

    async def run(self) -> None:
        """Handle queued events in order until a StopEvent arrives."""
        while True:
            event = await self.queue.get()
            try:
                if isinstance(event, StopEvent):
                    return
                try:
                    self.handle(event)
                except CellNotActiveError as exc:
                    # Popup clicks can arrive after their cache left view
                    log_error(str(exc).splitlines()[0])
            finally:
                self.queue.task_done()

    def handle(self, event: GameEvent):
        """Apply one event synchronously. Must be called from the running event loop."""
        if isinstance(event, MoveEvent):
            result = self.engine.move(event.direction)
        elif isinstance(event, PositionEvent):
            result = self.engine.move_to(event.lat, event.lng)
        elif isinstance(event, CollectEvent):
            result = self.engine.collect(GridCoordinate.parse(event.key))
        elif isinstance(event, DepositEvent):
            result = self.engine.deposit(GridCoordinate.parse(event.key), event.amount)
        elif isinstance(event, ResetEvent):
            result = self.engine.reset()
            log_info("Game reset; all caches regenerated.")
        elif isinstance(event, SensorToggleEvent):
            return self._toggle_sensor(event.enabled)
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

        self._schedule_save()
        return result

    def _deposit_event(self, key: str, amount: Optional[int]) -> DepositEvent:
        if amount is None:
            return DepositEvent(key=key, amount=self.engine.settings.deposit_batch)
        return DepositEvent(key=key, amount=amount)

    # -----------------------------
    # Persistence
    # -----------------------------

    def _schedule_save(self) -> None:
        if self.gateway is None:
            return
        # Snapshot now so the save reflects this event even if more arrive first
        state = self.engine.snapshot()
        task = asyncio.get_running_loop().create_task(self._save(state))
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    async def _save(self, state) -> None:
        assert self.gateway is not None
        async with self._save_lock:
            await self.gateway.save(state)

    # -----------------------------
    # Geolocation sensor
    # -----------------------------

    def _toggle_sensor(self, enabled: Optional[bool]) -> bool:
        target = (not self.sensor_enabled) if enabled is None else enabled
        if target and not self.sensor_enabled:
            if self.location_provider is None:
                log_error("No location provider configured; sensor stays off.")
                return False
            self._sensor_task = asyncio.get_running_loop().create_task(self._forward_positions())
            log_info("Location sensor on.")
        elif not target and self.sensor_enabled:
            assert self._sensor_task is not None
            self._sensor_task.cancel()
            self._sensor_task = None
            log_info("Location sensor off.")
        return target

    async def _forward_positions(self) -> None:
        assert self.location_provider is not None
        try:
            async for lat, lng in self.location_provider.positions():
                await self.queue.put(PositionEvent(lat=lat, lng=lng))
        except Exception as exc:  # provider-specific failures (no fix, permission revoked)
            log_error(f"Location sensor stopped: {exc}")

    async def _stop_sensor(self) -> None:
        task, self._sensor_task = self._sensor_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
