"""Utilities for viewing the grid around the player."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from .grid import GridCoordinate


_DEFAULT_CELL_SYMBOLS: Dict[str, str] = {
    "player": "@ ",
    "cache": "$ ",
    "empty_cache": "o ",
    "blank": ". ",
}


def render_ascii_window(
    center: GridCoordinate,
    *,
    radius: int,
    caches: Mapping[GridCoordinate, int],
    symbols: Optional[Dict[str, str]] = None,
) -> str:
    """Render the window around ``center`` as text, north at the top.

    ``caches`` maps active cells to their current coin count. Cells holding
    coins show ``$``, emptied caches ``o``, and the player's own cell ``@``
    regardless of what it holds. Handy for debug output and the terminal demo.
    """

    radius = max(int(radius), 0)

    mapping = {**_DEFAULT_CELL_SYMBOLS}
    if symbols:
        mapping.update(symbols)

    lines: List[str] = []
    for i in range(center.i + radius, center.i - radius - 1, -1):
        row_chars: List[str] = []
        for j in range(center.j - radius, center.j + radius + 1):
            coord = GridCoordinate(i, j)
            if coord == center:
                row_chars.append(mapping["player"])
            elif coord in caches:
                row_chars.append(mapping["cache"] if caches[coord] > 0 else mapping["empty_cache"])
            else:
                row_chars.append(mapping["blank"])
        lines.append("".join(row_chars).rstrip())

    return "\n".join(lines)
