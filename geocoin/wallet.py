"""Player wallet and score ledger."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Wallet:
    """Coins in hand plus two cumulative counters.

    ``coins`` never drops below zero; ``points`` and ``total_deposited`` never
    decrease. Only ``credit`` (collect) and ``debit`` (deposit) change them.
    """

    coins: int = 0
    points: int = 0
    total_deposited: int = 0

    def credit(self, count: int) -> int:
        """Add collected coins to the balance and the score."""
        if count < 0:
            raise ValueError(f"Cannot credit a negative coin count ({count})")
        self.coins += count
        self.points += count
        return count

    def debit(self, requested: int) -> int:
        """Remove up to ``requested`` coins for a deposit; returns the amount moved."""
        if requested < 0:
            raise ValueError(f"Cannot deposit a negative coin count ({requested})")
        amount = min(requested, self.coins)
        self.coins -= amount
        self.total_deposited += amount
        return amount

    def status_line(self) -> str:
        if self.points == 0 and self.coins == 0:
            return "No points yet..."
        return f"Points: {self.points} | Coins: {self.coins}"
