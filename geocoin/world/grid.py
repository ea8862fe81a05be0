"""Grid coordinate mapping for the flat degree-based play grid.

A continuous (lat, lng) position maps onto a discrete integer cell. The
mapping is a plain floor division by the tile edge length, optionally taken
relative to a fixed anchor so the starting point sits in cell (0, 0). No
geodesy: one tile is ``tile_size`` degrees on both axes everywhere.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple

# Quotients are rounded to this many decimals before flooring. Positions reached
# by whole-tile steps (lat + k * tile) otherwise land a hair below the boundary.
_QUOTIENT_DECIMALS = 6


@dataclass(frozen=True, order=True)
class GridCoordinate:
    """Integer cell coordinate. Equality on (i, j) is the cache key everywhere."""

    i: int
    j: int

    @property
    def key(self) -> str:
        """Render as ``"i,j"`` (persisted cache key and spawn luck key)."""
        return f"{self.i},{self.j}"

    @classmethod
    def parse(cls, key: str) -> "GridCoordinate":
        """Inverse of ``key``. Raises ValueError on anything but two integers."""
        parts = key.split(",")
        if len(parts) != 2:
            raise ValueError(f"Cell key must look like 'i,j', got '{key}'")
        return cls(int(parts[0]), int(parts[1]))

    def __str__(self) -> str:
        return self.key


class Bounds(NamedTuple):
    """Axis-aligned cell rectangle in degrees."""

    lat_min: float
    lng_min: float
    lat_max: float
    lng_max: float


class GridMapper:
    """Convert between continuous positions and grid cells.

    The convention (absolute vs anchored) is fixed at construction; a running
    game must keep one mapper for its whole lifetime so cell identities stay
    stable.

    Args:
        tile_size: Cell edge length in degrees
        anchor: Optional (lat, lng) that becomes the south-west corner of cell (0, 0).
            ``None`` uses the absolute convention ``floor(lat / tile_size)``.
    """

    def __init__(self, tile_size: float, anchor: Optional[Tuple[float, float]] = None):
        if tile_size <= 0:
            raise ValueError("tile_size must be positive")
        self.tile_size = tile_size
        self.anchor = anchor

    @property
    def origin(self) -> Tuple[float, float]:
        return self.anchor if self.anchor is not None else (0.0, 0.0)

    def _index(self, value: float, origin: float) -> int:
        return math.floor(round((value - origin) / self.tile_size, _QUOTIENT_DECIMALS))

    def to_grid(self, lat: float, lng: float) -> GridCoordinate:
        """Map a position to the cell containing it."""
        origin_lat, origin_lng = self.origin
        return GridCoordinate(self._index(lat, origin_lat), self._index(lng, origin_lng))

    def to_bounds(self, coord: GridCoordinate) -> Bounds:
        """Return the rectangle covered by ``coord``."""
        origin_lat, origin_lng = self.origin
        return Bounds(
            lat_min=origin_lat + coord.i * self.tile_size,
            lng_min=origin_lng + coord.j * self.tile_size,
            lat_max=origin_lat + (coord.i + 1) * self.tile_size,
            lng_max=origin_lng + (coord.j + 1) * self.tile_size,
        )

    def center_of(self, coord: GridCoordinate) -> Tuple[float, float]:
        bounds = self.to_bounds(coord)
        return (
            (bounds.lat_min + bounds.lat_max) / 2,
            (bounds.lng_min + bounds.lng_max) / 2,
        )


def visibility_window(center: GridCoordinate, radius: int) -> List[GridCoordinate]:
    """Return every cell within Chebyshev distance ``radius`` of ``center``.

    Row-major order (i ascending, then j ascending) so callers that iterate the
    window activate cells in a reproducible order.
    """

    radius = max(int(radius), 0)
    return [
        GridCoordinate(center.i + di, center.j + dj)
        for di in range(-radius, radius + 1)
        for dj in range(-radius, radius + 1)
    ]
