"""Order placement request shared by all backends."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .common import Amount, AssetPair, OrderSide, OrderType


@dataclass(frozen=True)
class OrderRequest:
    """A request to buy or sell ``amount`` of ``asset_pair``.

    A request with a ``limit_price`` is a limit order; without one it is a
    market order.
    """

    asset_pair: AssetPair
    amount: Amount
    side: str
    limit_price: Optional[Decimal] = None

    @property
    def order_type(self) -> str:
        return OrderType.MARKET if self.limit_price is None else OrderType.LIMIT

    @classmethod
    def market_buy(cls, asset_pair: AssetPair, amount: Amount) -> "OrderRequest":
        return cls(asset_pair=asset_pair, amount=amount, side=OrderSide.BUY)

    @classmethod
    def market_sell(cls, asset_pair: AssetPair, amount: Amount) -> "OrderRequest":
        return cls(asset_pair=asset_pair, amount=amount, side=OrderSide.SELL)

    @classmethod
    def limit_buy(
        cls, asset_pair: AssetPair, amount: Amount, limit_price: Decimal
    ) -> "OrderRequest":
        return cls(
            asset_pair=asset_pair,
            amount=amount,
            side=OrderSide.BUY,
            limit_price=limit_price,
        )

    @classmethod
    def limit_sell(
        cls, asset_pair: AssetPair, amount: Amount, limit_price: Decimal
    ) -> "OrderRequest":
        return cls(
            asset_pair=asset_pair,
            amount=amount,
            side=OrderSide.SELL,
            limit_price=limit_price,
        )
