"""Console logging for Geocoin games.

Every line carries a tag so world generation, player actions and save/load
problems stay distinguishable without colors. Colors are layered on top and
can be switched off with ``GEOCOIN_NO_COLOR``.
"""

import os
from enum import Enum


# Markers for message kinds (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"  # World generation / window recompute
LOG_TAG_PLAYER = "[P]"         # Collect, deposit
LOG_TAG_ERROR = "[!]"          # Stale clicks, failed saves, bad save files
LOG_TAG_SUCCESS = "[✓]"        # Game saved
LOG_TAG_INFO = "[i]"           # Session lifecycle, sensor, loads


class Color(Enum):
    """ANSI color codes for terminal output."""

    BLUE = "\033[94m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    CYAN = "\033[96m"

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


def colors_enabled() -> bool:
    return not os.getenv("GEOCOIN_NO_COLOR")


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if GEOCOIN_NO_COLOR is not set, otherwise plain text
    """
    if not colors_enabled():
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def _emit(tag: str, message: str, color: Color, bold: bool = False) -> None:
    print(colored(f"{tag} {message}", color, bold=bold))


def log_deterministic(message: str) -> None:
    """World operations that replay identically on every run (blue)."""
    _emit(LOG_TAG_DETERMINISTIC, message, Color.BLUE)


def log_player(message: str) -> None:
    """Coins moving between a cache and the wallet (yellow)."""
    _emit(LOG_TAG_PLAYER, message, Color.YELLOW)


def log_error(message: str) -> None:
    """Something the game recovered from; shown bold so it is not missed (red)."""
    _emit(LOG_TAG_ERROR, message, Color.RED, bold=True)


def log_success(message: str) -> None:
    _emit(LOG_TAG_SUCCESS, message, Color.GREEN)


def log_info(message: str) -> None:
    _emit(LOG_TAG_INFO, message, Color.CYAN)
