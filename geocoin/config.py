"""
Geocoin Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Grid geometry. One tile is TILE_DEGREES on a side in a flat degree projection.
    TILE_DEGREES: float = float(os.getenv("GEOCOIN_TILE_DEGREES", "1e-4"))
    # Visibility window radius in tiles (Chebyshev distance around the player cell)
    NEIGHBORHOOD_SIZE: int = int(os.getenv("GEOCOIN_NEIGHBORHOOD_SIZE", "8"))

    # "anchored" counts cells from the anchor below; "absolute" counts from (0, 0)
    GRID_MODE: str = os.getenv("GEOCOIN_GRID_MODE", "anchored")
    # Oakes College classroom, where every new game starts
    ANCHOR_LAT: float = float(os.getenv("GEOCOIN_ANCHOR_LAT", "36.98949379578401"))
    ANCHOR_LNG: float = float(os.getenv("GEOCOIN_ANCHOR_LNG", "-122.06277128548504"))

    # World generation
    SPAWN_PROBABILITY: float = float(os.getenv("GEOCOIN_SPAWN_PROBABILITY", "0.1"))
    MAX_INITIAL_COINS: int = int(os.getenv("GEOCOIN_MAX_INITIAL_COINS", "10"))

    # Coins moved by one press of a cache's deposit button
    DEPOSIT_BATCH: int = int(os.getenv("GEOCOIN_DEPOSIT_BATCH", "5"))

    # Persistence
    STATE_DIR: Path = Path(os.getenv("GEOCOIN_STATE_DIR", "geocoin_state"))
    STORAGE_KEY: str = os.getenv("GEOCOIN_STORAGE_KEY", "geocoin_state")

    # Logging
    VERBOSE: bool = os.getenv("GEOCOIN_VERBOSE", "false").lower() in ("1", "true", "yes")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if values are unusable."""
        if cls.TILE_DEGREES <= 0:
            raise ValueError("GEOCOIN_TILE_DEGREES must be a positive number of degrees")

        if cls.NEIGHBORHOOD_SIZE < 0:
            raise ValueError("GEOCOIN_NEIGHBORHOOD_SIZE must be zero or greater")

        if cls.GRID_MODE not in ("anchored", "absolute"):
            raise ValueError(
                f"GEOCOIN_GRID_MODE must be 'anchored' or 'absolute', got '{cls.GRID_MODE}'"
            )

        if not 0.0 <= cls.SPAWN_PROBABILITY <= 1.0:
            raise ValueError("GEOCOIN_SPAWN_PROBABILITY must be between 0 and 1")

        if cls.MAX_INITIAL_COINS < 1:
            raise ValueError("GEOCOIN_MAX_INITIAL_COINS must be at least 1")

        if cls.DEPOSIT_BATCH < 1:
            raise ValueError("GEOCOIN_DEPOSIT_BATCH must be at least 1")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Geocoin Configuration:",
            f"  Tile Size: {cls.TILE_DEGREES}°",
            f"  Neighborhood: {cls.NEIGHBORHOOD_SIZE} tiles",
            f"  Grid Mode: {cls.GRID_MODE} ({cls.ANCHOR_LAT}, {cls.ANCHOR_LNG})",
            f"  Spawn Probability: {cls.SPAWN_PROBABILITY}",
            f"  Max Initial Coins: {cls.MAX_INITIAL_COINS}",
            f"  State Dir: {cls.STATE_DIR}",
        ]
        return "\n".join(lines)
