"""Tests for the event-driven game session: ordering, persistence, surface and sensor."""

import json

import pytest
from pydantic import ValidationError

from geocoin.engine import CacheEngine
from geocoin.persistence import InMemoryPersistence, StateGateway
from geocoin.schemas import (
    CollectEvent,
    DepositEvent,
    Direction,
    GameSettings,
    MoveEvent,
    PositionEvent,
    ResetEvent,
    SensorToggleEvent,
    StopEvent,
)
from geocoin.session import GameSession, LocationProvider, ScriptedLocationProvider
from geocoin.surface import AsciiSurface
from geocoin.world import GridCoordinate


CACHES = {(0, 0): 0.35, (2, 0): 0.5}


def fake_luck(key: str) -> float:
    parts = key.split(",")
    coord = (int(parts[0]), int(parts[1]))
    if len(parts) == 2:
        return 0.0 if coord in CACHES else 0.99
    return CACHES[coord]


def make_engine() -> CacheEngine:
    settings = GameSettings(
        tile_size=1.0,
        neighborhood_size=1,
        grid_mode="absolute",
        anchor_lat=0.0,
        anchor_lng=0.0,
        deposit_batch=5,
    )
    return CacheEngine(settings, luck_fn=fake_luck, verbose=False)


async def play(session: GameSession, *events) -> None:
    for event in events:
        await session.dispatch(event)
    await session.dispatch(StopEvent())
    await session.run()


@pytest.mark.asyncio
async def test_events_are_applied_in_dispatch_order():
    session = GameSession(make_engine())
    await session.start()

    await play(
        session,
        CollectEvent(key="0,0"),
        DepositEvent(key="0,0", amount=2),
        MoveEvent(direction=Direction.NORTH),
        MoveEvent(direction="north"),
        MoveEvent(direction=Direction.SOUTH),
        MoveEvent(direction=Direction.SOUTH),
    )

    engine = session.engine
    assert engine.wallet.coins == 2
    assert engine.wallet.total_deposited == 2
    assert engine.player_cell == GridCoordinate(0, 0)
    assert [coin.serial for coin in engine.inventory(GridCoordinate(0, 0))] == [4, 5]
    assert session.queue.empty()


@pytest.mark.asyncio
async def test_stale_popup_click_is_logged_not_raised(capsys):
    session = GameSession(make_engine())
    await session.start()

    await play(
        session,
        MoveEvent(direction=Direction.WEST),
        MoveEvent(direction=Direction.WEST),
        CollectEvent(key="0,0"),
    )

    assert session.engine.wallet.coins == 0
    assert "not active" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_state_is_saved_and_resumed():
    store = InMemoryPersistence()
    session = GameSession(make_engine(), gateway=StateGateway(store, key="save"))
    await session.start()
    await play(session, CollectEvent(key="0,0"), MoveEvent(direction=Direction.NORTH))
    await session.close()

    document = json.loads(store.values["save"])
    assert document["playerPoints"] == 4
    assert document["playerPosition"] == {"lat": 1.0, "lng": 0.0}

    resumed = GameSession(make_engine(), gateway=StateGateway(store, key="save"))
    await resumed.start()

    assert resumed.engine.wallet.points == 4
    assert resumed.engine.player_cell == GridCoordinate(1, 0)
    assert resumed.engine.inventory(GridCoordinate(0, 0)) == []
    assert resumed.engine.active_cells() == [GridCoordinate(0, 0), GridCoordinate(2, 0)]


@pytest.mark.asyncio
async def test_mutations_schedule_background_saves():
    store = InMemoryPersistence()
    session = GameSession(make_engine(), gateway=StateGateway(store, key="save"))
    await session.start()

    session.handle(CollectEvent(key="0,0"))
    assert session._pending_saves
    await session.close()

    assert json.loads(store.values["save"])["playerCoins"] == 4


@pytest.mark.asyncio
async def test_failed_saves_do_not_block_the_game():
    class ReadOnlyStore(InMemoryPersistence):
        async def set(self, key: str, value: str) -> None:
            raise OSError("read-only filesystem")

    session = GameSession(make_engine(), gateway=StateGateway(ReadOnlyStore(), key="save"))
    await session.start()
    await play(session, CollectEvent(key="0,0"), DepositEvent(key="0,0", amount=1))
    await session.close()

    assert session.engine.wallet.coins == 3
    assert session.engine.wallet.total_deposited == 1


@pytest.mark.asyncio
async def test_corrupt_save_starts_fresh_world():
    store = InMemoryPersistence()
    store.values["save"] = '{"caches": "nope"}'
    session = GameSession(make_engine(), gateway=StateGateway(store, key="save"))

    await session.start()

    assert session.engine.active_cells() == [GridCoordinate(0, 0)]
    assert session.engine.wallet.points == 0


@pytest.mark.asyncio
async def test_surface_tracks_active_caches_and_popups():
    surface = AsciiSurface()
    session = GameSession(make_engine(), surface=surface)
    await session.start()

    assert set(surface.rectangles) == {"0,0"}
    popup = surface.popups["0,0"]
    assert popup.lines[0] == 'Cache at "0,0"'
    assert "0:0#3" in popup.text
    assert surface.status == "No points yet..."

    popup.collect()
    await play(session)
    assert surface.status == "Points: 4 | Coins: 4"
    assert surface.popups["0,0"].coin_count == 0

    # Default deposit button moves the configured batch
    surface.popups["0,0"].deposit()
    await play(session)
    assert session.engine.wallet.coins == 0
    assert session.engine.wallet.total_deposited == 4

    await play(session, MoveEvent(direction=Direction.NORTH), MoveEvent(direction=Direction.NORTH))
    assert set(surface.rectangles) == {"2,0"}
    assert "0,0" not in surface.popups

    rendered = surface.render(session.engine.player_cell, 1)
    assert rendered.splitlines()[1].startswith(".")
    assert "@" in rendered


@pytest.mark.asyncio
async def test_reset_event_discards_progress():
    surface = AsciiSurface()
    session = GameSession(make_engine(), surface=surface)
    await session.start()
    await play(session, CollectEvent(key="0,0"), MoveEvent(direction=Direction.EAST), ResetEvent())

    assert session.engine.wallet.points == 0
    assert session.engine.player_cell == GridCoordinate(0, 0)
    assert surface.status == "No points yet..."
    assert surface.popups["0,0"].coin_count == 4


@pytest.mark.asyncio
async def test_location_sensor_feeds_the_same_queue():
    provider = ScriptedLocationProvider([(0.5, 0.5), (1.5, 0.5), (2.5, 0.5)])
    session = GameSession(make_engine(), location_provider=provider)
    await session.start()

    assert session.handle(SensorToggleEvent(enabled=True)) is True
    assert session.sensor_enabled
    await session._sensor_task
    assert not session.sensor_enabled

    await play(session)
    assert session.engine.player_position == (2.5, 0.5)
    assert session.engine.player_cell == GridCoordinate(2, 0)

    assert session.handle(SensorToggleEvent(enabled=False)) is False
    await session.close()


@pytest.mark.asyncio
async def test_sensor_toggle_without_provider_stays_off(capsys):
    session = GameSession(make_engine())
    await session.start()

    assert session.handle(SensorToggleEvent(enabled=True)) is False
    assert not session.sensor_enabled
    assert "No location provider" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_position_events_move_the_player():
    session = GameSession(make_engine())
    await session.start()

    await play(session, PositionEvent(lat=-3.2, lng=7.9))

    assert session.engine.player_cell == GridCoordinate(-4, 7)
    assert session.engine.active_cells() == []


@pytest.mark.asyncio
async def test_failing_location_provider_still_saves_on_close(capsys):
    class LostSignalProvider(LocationProvider):
        async def positions(self):
            yield (1.5, 0.5)
            raise OSError("gps gone")

    store = InMemoryPersistence()
    session = GameSession(
        make_engine(),
        gateway=StateGateway(store, key="save"),
        location_provider=LostSignalProvider(),
    )
    await session.start()

    session.handle(SensorToggleEvent(enabled=True))
    await session._sensor_task
    assert not session.sensor_enabled
    assert "Location sensor stopped: gps gone" in capsys.readouterr().out

    await play(session)
    await session.close()

    assert json.loads(store.values["save"])["playerPosition"] == {"lat": 1.5, "lng": 0.5}


def test_events_reject_malformed_cell_keys():
    with pytest.raises(ValidationError):
        CollectEvent(key="oops")
    with pytest.raises(ValidationError):
        DepositEvent(key="1,2,3", amount=1)
    with pytest.raises(ValidationError):
        DepositEvent(key="a,b")

    assert CollectEvent(key="-4,7").key == "-4,7"
