"""Value types shared by every irontrade backend.

All monetary values use Decimal to prevent floating-point drift.
Serialisation helpers produce JSON-safe dicts with string-encoded Decimals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Union

from ..errors import InvalidAssetPairError

_ZERO = Decimal("0")


def _dec_or_none(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


@dataclass(frozen=True)
class AssetPair:
    """A tradable pair such as ``GBP/USD``.

    ``quantity_asset`` is the traded (base) leg and ``notional_asset`` the
    settlement (quote) leg.
    """

    quantity_asset: str
    notional_asset: str

    @classmethod
    def parse(cls, raw: str) -> "AssetPair":
        """Parse ``"QUANTITY/NOTIONAL"``.

        Raises:
            InvalidAssetPairError: not exactly one ``/`` or an empty leg.
        """
        parts = str(raw).split("/")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise InvalidAssetPairError(raw)
        return cls(quantity_asset=parts[0], notional_asset=parts[1])

    def __str__(self) -> str:
        return f"{self.quantity_asset}/{self.notional_asset}"


@dataclass(frozen=True)
class Quantity:
    """Order size expressed in units of the quantity asset."""

    quantity: Decimal

    def to_dict(self) -> dict[str, str]:
        return {"quantity": str(self.quantity)}


@dataclass(frozen=True)
class Notional:
    """Order size expressed as a value in the notional asset."""

    notional: Decimal

    def to_dict(self) -> dict[str, str]:
        return {"notional": str(self.notional)}


Amount = Union[Quantity, Notional]


class OrderSide:
    """Order sides."""

    BUY = "buy"
    SELL = "sell"


class OrderType:
    """Order types."""

    MARKET = "market"
    LIMIT = "limit"


class OrderStatus:
    """Order lifecycle states (string constants).

    The simulator only produces ``NEW`` and ``FILLED``; the rest exist so
    that live venue orders can be represented.
    """

    NEW = "new"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    EXPIRED = "expired"
    UNIMPLEMENTED = "unimplemented"


@dataclass(frozen=True)
class Order:
    """Snapshot of an order.  Updates produce a new value."""

    order_id: str
    asset_symbol: str
    amount: Amount
    limit_price: Optional[Decimal]
    filled_quantity: Decimal
    average_fill_price: Optional[Decimal]
    status: str
    order_type: str
    side: str

    @property
    def asset_pair(self) -> AssetPair:
        return AssetPair.parse(self.asset_symbol)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-safe dict (Decimals serialised as strings)."""
        return {
            "order_id": self.order_id,
            "asset_symbol": self.asset_symbol,
            "amount": self.amount.to_dict(),
            "limit_price": _dec_or_none(self.limit_price),
            "filled_quantity": str(self.filled_quantity),
            "average_fill_price": _dec_or_none(self.average_fill_price),
            "status": self.status,
            "order_type": self.order_type,
            "side": self.side,
        }


@dataclass(frozen=True)
class Bar:
    """OHLC summary for the window starting at ``date_time``."""

    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    date_time: datetime

    @property
    def mid(self) -> Decimal:
        return (self.low + self.high) / 2

    def to_dict(self) -> dict[str, str]:
        return {
            "open": str(self.open),
            "high": str(self.high),
            "low": str(self.low),
            "close": str(self.close),
            "date_time": self.date_time.isoformat(),
        }


@dataclass(frozen=True)
class OpenPosition:
    """Holding of one non-currency asset."""

    asset_symbol: str
    quantity: Decimal
    average_entry_price: Optional[Decimal] = None
    market_value: Optional[Decimal] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset_symbol": self.asset_symbol,
            "quantity": str(self.quantity),
            "average_entry_price": _dec_or_none(self.average_entry_price),
            "market_value": _dec_or_none(self.market_value),
        }


@dataclass(frozen=True)
class Account:
    """Cash, buying power and open positions, all in ``currency``."""

    currency: str
    cash: Decimal = _ZERO
    buying_power: Decimal = _ZERO
    open_positions: dict[str, OpenPosition] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "cash": str(self.cash),
            "buying_power": str(self.buying_power),
            "open_positions": {
                symbol: position.to_dict()
                for symbol, position in sorted(self.open_positions.items())
            },
        }
