"""Capability interfaces implemented by the simulated and live backends.

Code that trades should depend on these rather than on a concrete backend,
so a :class:`SimulatedEnvironment` and a :class:`LiveEnvironment` can be
swapped without changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Optional

from .common import Account, AssetPair, Bar, Order
from .request import OrderRequest

DEFAULT_BAR_DURATION = timedelta(minutes=1)


class Client(ABC):
    """Order placement and account inspection."""

    @abstractmethod
    def place_order(self, req: OrderRequest) -> str:
        """Place an order and return its id."""

    @abstractmethod
    def get_orders(self) -> list[Order]:
        """Return every known order (no particular order)."""

    @abstractmethod
    def get_order(self, order_id: str) -> Order:
        """Return one order; raises ``OrderNotFoundError`` if unknown."""

    @abstractmethod
    def get_account(self) -> Account:
        """Return cash, buying power and open positions."""


class Market(ABC):
    """Market data queries."""

    @abstractmethod
    def get_latest_bar(
        self,
        asset_pair: AssetPair,
        bar_duration: timedelta = DEFAULT_BAR_DURATION,
    ) -> Optional[Bar]:
        """Return the most recent completed bar, or None."""


class Environment(Client, Market, ABC):
    """A backend that can both trade and answer market data queries."""
