"""Ledger: per-asset settled balances and buying power for the simulator.

Design invariants
-----------------
1. **All values are Decimal** and signed.  Negative starting balances are
   stored as given; nothing here enforces a floor.
2. **Unseen assets read as zero.**  Entries are created on first write.
3. **Balances are settlement, buying power is commitment.**  The broker moves
   ``balances`` only when an order fills and moves ``buying_power`` when an
   order is placed (reservation) and when it fills (release).  The two maps
   may therefore disagree while limit orders are pending.

Thread-safety: not thread-safe; designed for single-threaded use.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Optional

_ZERO = Decimal("0")


class Ledger:
    """Two additive per-asset maps: ``balances`` and ``buying_power``."""

    def __init__(self, starting_balances: Optional[Mapping[str, Decimal]] = None) -> None:
        """
        Args:
            starting_balances: Initial settled holdings.  Buying power is
                               seeded with the same values.
        """
        balances = dict(starting_balances or {})
        self._balances: dict[str, Decimal] = dict(balances)
        self._buying_power: dict[str, Decimal] = dict(balances)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_balance(self, asset: str) -> Decimal:
        return self._balances.get(asset, _ZERO)

    def get_buying_power(self, asset: str) -> Decimal:
        return self._buying_power.get(asset, _ZERO)

    def balances(self) -> dict[str, Decimal]:
        """Copy of every settled balance entry (including zeros)."""
        return dict(self._balances)

    def buying_powers(self) -> dict[str, Decimal]:
        """Copy of every buying power entry (including zeros)."""
        return dict(self._buying_power)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update_balance(self, asset: str, delta: Decimal) -> None:
        self._balances[asset] = self.get_balance(asset) + delta

    def update_buying_power(self, asset: str, delta: Decimal) -> None:
        self._buying_power[asset] = self.get_buying_power(asset) + delta
