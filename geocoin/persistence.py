"""
PersistenceStrategy interface for pluggable key-value storage.

This module provides the abstract PersistenceStrategy interface, two concrete
backends, and the StateGateway that turns a backend into "load the saved game /
save the current game". Persistence is OPTIONAL - a game runs entirely in memory
when no store is configured.

Two included implementations:
1. InMemoryPersistence - Dict-based storage, data lost on exit (testing, prototyping)
2. JsonPersistence - One file per key under a directory (local play, debugging)

Key responsibilities:
- get(key) / set(key, value) over opaque strings (the browser localStorage contract)
- Load the saved GameState on startup, falling back to a fresh world when the
  record is absent, unreadable or malformed
- Save after every mutating event on a best-effort basis: a failed write is
  retried, then logged, and never propagates into the game

Usage pattern:
    store = JsonPersistence("saves")
    await store.initialize()

    gateway = StateGateway(store)
    state = await gateway.load()          # None -> start fresh
    await gateway.save(engine.snapshot())

    await store.close()
"""

import asyncio
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from .config import Config
from .logging_utils import log_error, log_info
from .schemas import GameState

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class PersistenceStrategy(ABC):
    """Abstract base class for the key-value store behind saved games.

    Async interface rationale:
    - Backends may do disk or network I/O; async keeps the event loop responsive
    - initialize() and close() manage directories, connections, etc.
    - Async is a no-op for InMemoryPersistence

    Concrete implementations:
    - InMemoryPersistence: Fast, ephemeral, no dependencies (testing/prototyping)
    - JsonPersistence: Human-readable files, easy to inspect and delete
    - Custom: Implement this interface for Redis, a browser bridge, etc.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """
        Initialize the persistence backend.

        Called once before the game starts.

        Raises:
            Exception: If initialization fails
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close the persistence backend.

        Called once after the game ends.
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under ``key``.

        Args:
            key: Storage key

        Returns:
            The stored string, or None if nothing is stored

        Raises:
            Exception: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Store ``value`` under ``key``, replacing any previous value.

        Raises:
            Exception: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Safe to call when nothing is stored."""
        pass


class InMemoryPersistence(PersistenceStrategy):
    """In-memory persistence using a Python dict (no files).

    Data is ephemeral - lost when the process exits. close() keeps the data so
    tests can inspect what was written.
    """

    def __init__(self):
        """Initialize in-memory storage."""
        self.values: Dict[str, str] = {}

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value

    async def delete(self, key: str) -> None:
        self.values.pop(key, None)


class JsonPersistence(PersistenceStrategy):
    """File-based persistence: one ``{key}.json`` file per key.

    Directory structure:
    ```
    {base_path}/
      geocoin_state.json        # GameState document
    ```

    Writes go to a temporary sibling first and are renamed into place, so a
    crash mid-write leaves the previous save intact. All file I/O runs in a
    worker thread (asyncio.to_thread).
    """

    def __init__(self, base_path: Path | str | None = None):
        self.base_path = Path(base_path) if base_path is not None else Config.STATE_DIR

    async def initialize(self) -> None:
        await asyncio.to_thread(self.base_path.mkdir, parents=True, exist_ok=True)

    async def close(self) -> None:
        # Nothing to clean up for JSON persistence
        return None

    async def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return await asyncio.to_thread(path.read_text, "utf-8")

    async def set(self, key: str, value: str) -> None:
        path = self._path(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_text(value, "utf-8")
            tmp_path.replace(path)

        await asyncio.to_thread(_write)

    async def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            await asyncio.to_thread(path.unlink)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(
                f"Storage key '{key}' must only contain letters, digits, '.', '_' or '-'"
            )
        return self.base_path / f"{key}.json"


class StateGateway:
    """Read and write the whole GameState under a single storage key.

    Failures here are never fatal: a bad read means "no saved game", a bad
    write is retried ``max_attempts`` times and then reported.
    """

    def __init__(
        self,
        store: PersistenceStrategy,
        key: Optional[str] = None,
        *,
        max_attempts: int = 3,
    ):
        self.store = store
        self.key = key or Config.STORAGE_KEY
        self.max_attempts = max_attempts

    async def load(self) -> Optional[GameState]:
        """Return the saved game, or None when a fresh world should be generated."""
        try:
            raw = await self.store.get(self.key)
        except Exception as exc:  # backend-specific read errors
            log_error(f"Could not read saved game '{self.key}': {exc}. Starting a fresh world.")
            return None

        if raw is None:
            return None

        try:
            state = GameState.model_validate_json(raw)
        except ValidationError as exc:
            log_error(
                f"Saved game '{self.key}' is malformed ({exc.error_count()} issue(s)). "
                "Starting a fresh world."
            )
            return None

        log_info(f"Loaded saved game '{self.key}' with {len(state.caches)} cache(s).")
        return state

    async def save(self, state: GameState) -> bool:
        """Write ``state``; returns False (after logging) if every attempt failed."""
        payload = state.to_json()
        try:
            # Only I/O errors are worth retrying; anything else fails on the first try
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(OSError),
                stop=stop_after_attempt(self.max_attempts),
                reraise=True,
            ):
                with attempt:
                    await self.store.set(self.key, payload)
        except Exception as exc:  # best-effort: the in-memory game carries on
            log_error(f"Could not save game '{self.key}': {exc}")
            return False
        return True

    async def clear(self) -> None:
        """Forget the saved game."""
        try:
            await self.store.delete(self.key)
        except Exception as exc:
            log_error(f"Could not clear saved game '{self.key}': {exc}")
