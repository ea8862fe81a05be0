"""Deterministic pseudo-random generator for world generation.

``luck(key)`` hashes an arbitrary string (cyrb128) and uses the first hash
word to seed a single mulberry32 draw. Identical keys give bit-identical
floats on every run and every platform, which is what lets an untouched cell
be re-derived instead of stored. Not cryptographic.

All arithmetic is done on unsigned 32-bit words; Python ints are masked after
every multiply/add so the results match the usual JavaScript implementation
(``Math.imul`` / ``>>>``) over UTF-16 code units.
"""

from __future__ import annotations

import math
from typing import Callable, List

from .grid import GridCoordinate

LuckFunction = Callable[[str], float]

_MASK = 0xFFFFFFFF
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK


def _code_units(key: str) -> List[int]:
    raw = key.encode("utf-16-le")
    return [raw[idx] | (raw[idx + 1] << 8) for idx in range(0, len(raw), 2)]


def cyrb128(key: str) -> tuple[int, int, int, int]:
    """128-bit string hash returned as four unsigned 32-bit words."""

    h1, h2, h3, h4 = 1779033703, 3144134277, 1013904242, 2773480762
    for k in _code_units(key):
        h1 = h2 ^ _imul(h1 ^ k, 597399067)
        h2 = h3 ^ _imul(h2 ^ k, 2869860233)
        h3 = h4 ^ _imul(h3 ^ k, 951274213)
        h4 = h1 ^ _imul(h4 ^ k, 2716044179)

    h1 = _imul(h3 ^ (h1 >> 18), 597399067)
    h2 = _imul(h4 ^ (h2 >> 22), 2869860233)
    h3 = _imul(h1 ^ (h3 >> 17), 951274213)
    h4 = _imul(h2 ^ (h4 >> 19), 2716044179)

    h1 ^= h2 ^ h3 ^ h4
    h2 ^= h1
    h3 ^= h1
    h4 ^= h1
    return h1, h2, h3, h4


def mulberry32(seed: int) -> float:
    """First output of a mulberry32 stream seeded with ``seed``, in [0, 1)."""

    t = (seed + 0x6D2B79F5) & _MASK
    t = _imul(t ^ (t >> 15), t | 1)
    t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK
    return ((t ^ (t >> 14)) & _MASK) / _TWO_POW_32


def luck(key: str) -> float:
    """Map ``key`` to a reproducible float in [0, 1)."""
    return mulberry32(cyrb128(key)[0])


def spawn_key(coord: GridCoordinate) -> str:
    return coord.key


def coin_count_key(coord: GridCoordinate) -> str:
    return f"{coord.key},coins"


def spawns(coord: GridCoordinate, probability: float, luck_fn: LuckFunction = luck) -> bool:
    """Return True if ``coord`` holds a cache in this world."""
    return luck_fn(spawn_key(coord)) < probability


def initial_coin_count(coord: GridCoordinate, max_coins: int, luck_fn: LuckFunction = luck) -> int:
    """Coins minted when a cache is first discovered: 1..max_coins."""
    return math.floor(luck_fn(coin_count_key(coord)) * max_coins) + 1
