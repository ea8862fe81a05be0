"""
Walkabout - Terminal Geocoin Demo

Walks the player around the Oakes College anchor with scripted button presses,
empties every cache it passes and drops coins back into a few of them. The
window around the player is printed as ASCII after each step.

The game is saved to ./walkabout_state/ so a second run resumes where the
first one stopped. Delete that directory to regenerate the world.

Run: uv run python examples/walkabout/run.py
"""

import asyncio

from geocoin import (
    AsciiSurface,
    CacheEngine,
    CollectEvent,
    DepositEvent,
    Direction,
    GameSession,
    GameSettings,
    JsonPersistence,
    MoveEvent,
    StateGateway,
    StopEvent,
)
from geocoin.config import Config

VIEW_RADIUS = 4
ROUTE = [Direction.NORTH] * 3 + [Direction.EAST] * 12 + [Direction.SOUTH] * 6 + [Direction.WEST] * 12


async def play(session: GameSession, *events) -> None:
    """Queue events and handle them all before returning."""
    for event in events:
        await session.dispatch(event)
    await session.dispatch(StopEvent())
    await session.run()


async def main() -> None:
    Config.validate()
    print(Config.display())

    settings = GameSettings(neighborhood_size=VIEW_RADIUS)
    engine = CacheEngine(settings)
    surface = AsciiSurface()

    store = JsonPersistence("walkabout_state")
    await store.initialize()
    session = GameSession(engine, gateway=StateGateway(store), surface=surface)
    await session.start()

    for step, direction in enumerate(ROUTE, start=1):
        await play(session, MoveEvent(direction=direction))

        # Press collect on everything in view; deposit into every third cache
        presses = []
        for index, coord in enumerate(engine.active_cells()):
            presses.append(CollectEvent(key=coord.key))
            if index % 3 == 0:
                presses.append(DepositEvent(key=coord.key))
        await play(session, *presses)

        print(f"\nStep {step}: {direction.value}")
        print(surface.render(engine.player_cell, VIEW_RADIUS))

    await session.close()
    await store.close()

    wallet = engine.wallet
    print(
        f"\nDone. Points={wallet.points} Coins={wallet.coins} "
        f"Deposited={wallet.total_deposited}"
    )


if __name__ == "__main__":
    asyncio.run(main())
