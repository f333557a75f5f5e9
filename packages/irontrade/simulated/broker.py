"""SimulatedBroker: in-process matching and bookkeeping engine.

Order lifecycle::

    place_order()            set_notional_per_unit()
         |                           |
         v                           v
    reserve buying power  -->  NEW (limit)  --fill-check-->  FILLED
         |
         +-- market: fill immediately at the current price

Reservation model
-----------------
* BUY reserves notional-asset buying power: ``limit_price * quantity`` for a
  limit order (worst case) or ``notional`` for a market order.
* SELL reserves quantity-asset buying power: ``quantity``.
* On fill, settled balances move at the *fill-time* price.  A limit BUY that
  fills below its limit has the unused part of its reservation released.

A failed ``place_order`` leaves the ledger and order table untouched: every
check runs before the first write.

Usage::

    broker = (
        SimulatedBrokerBuilder("USD")
        .set_balance(Decimal("14.1"))
        .build()
    )
    broker.set_notional_per_unit(AssetPair.parse("GBP/USD"), Decimal("1.31"))
    oid = broker.place_order(
        OrderRequest.market_buy(AssetPair.parse("GBP/USD"), Quantity(Decimal("10")))
    )
    broker.get_balance("USD")   # Decimal("1.00")
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from ..api.common import (
    Amount,
    AssetPair,
    Notional,
    Order,
    OrderSide,
    OrderStatus,
    OrderType,
    Quantity,
)
from ..api.request import OrderRequest
from ..errors import (
    InsufficientBuyingPowerError,
    InvalidNotionalAssetError,
    MissingCurrencyNotionalAssetError,
    NoNotionalPerUnitError,
    OrderNotFoundError,
)
from .ledger import Ledger

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


class SimulatedBroker:
    """Simulated venue holding balances, prices and orders.

    Thread-safety: not thread-safe.  A concurrent caller must serialise
    ``place_order`` and ``set_notional_per_unit`` since both read and then
    conditionally write ledger state.
    """

    def __init__(
        self,
        currency: str,
        notional_assets: Iterable[str],
        starting_balances: Optional[Mapping[str, Decimal]] = None,
    ) -> None:
        """
        Args:
            currency:          Settlement currency; must be a notional asset.
            notional_assets:   Assets accepted as the notional leg of a pair.
            starting_balances: Initial holdings; buying power starts equal.

        Raises:
            MissingCurrencyNotionalAssetError: ``currency`` not in
                ``notional_assets``.
        """
        notional_assets = frozenset(notional_assets)
        if currency not in notional_assets:
            raise MissingCurrencyNotionalAssetError(currency)

        self._currency = currency
        self._notional_assets = notional_assets
        self._ledger = Ledger(starting_balances)
        self._notional_per_unit: dict[AssetPair, Decimal] = {}
        self._orders: dict[str, Order] = {}

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def place_order(self, req: OrderRequest) -> str:
        """Reserve buying power, record the order and try to fill it.

        Returns:
            The new order id.

        Raises:
            InvalidNotionalAssetError:    pair's notional leg not accepted.
            NoNotionalPerUnitError:       no price set for the pair.
            InsufficientBuyingPowerError: reservation exceeds buying power.
            ValueError:                   non-positive amount or limit price.
        """
        _check_positive(_amount_value(req.amount), "amount")
        if req.limit_price is not None:
            _check_positive(req.limit_price, "limit_price")

        quantity, notional = self._quantity_and_notional(req.asset_pair, req.amount)
        reserve_asset, reserve_amount = _reservation(req, quantity, notional)

        if self._ledger.get_buying_power(reserve_asset) < reserve_amount:
            raise InsufficientBuyingPowerError(reserve_asset)

        order_id = str(uuid.uuid4())
        order = Order(
            order_id=order_id,
            asset_symbol=str(req.asset_pair),
            amount=req.amount,
            limit_price=req.limit_price,
            filled_quantity=_ZERO,
            average_fill_price=None,
            status=OrderStatus.NEW,
            order_type=req.order_type,
            side=req.side,
        )
        self._ledger.update_buying_power(reserve_asset, -reserve_amount)
        self._orders[order_id] = order
        logger.debug(
            "Order placed: id=%s pair=%s side=%s type=%s reserved=%s %s",
            order_id, order.asset_symbol, order.side, order.order_type,
            reserve_amount, reserve_asset,
        )

        if order.order_type == OrderType.MARKET:
            self._fill(order_id)
        else:
            self._maybe_fill(order_id)
        return order_id

    def get_order(self, order_id: str) -> Order:
        """Return the order for *order_id* (raises OrderNotFoundError)."""
        try:
            return self._orders[order_id]
        except KeyError:
            raise OrderNotFoundError(order_id) from None

    def get_orders(self) -> list[Order]:
        """Snapshot of every order; ordering is unspecified."""
        return list(self._orders.values())

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    def get_notional_per_unit(self, asset_pair: AssetPair) -> Decimal:
        self._check_notional(asset_pair)
        try:
            return self._notional_per_unit[asset_pair]
        except KeyError:
            raise NoNotionalPerUnitError(asset_pair) from None

    def set_notional_per_unit(self, asset_pair: AssetPair, notional_per_unit: Decimal) -> None:
        """Record the price of *asset_pair* and re-check its pending limit orders.

        Only the pair as given is priced; the inverse pair is not derived.

        Raises:
            InvalidNotionalAssetError: pair's notional leg not accepted.
            ValueError:                non-positive price.
        """
        self._check_notional(asset_pair)
        _check_positive(notional_per_unit, "notional_per_unit")
        self._notional_per_unit[asset_pair] = notional_per_unit
        logger.debug("Price set: pair=%s notional_per_unit=%s", asset_pair, notional_per_unit)

        symbol = str(asset_pair)
        for order_id, order in list(self._orders.items()):
            if order.asset_symbol == symbol:
                self._maybe_fill(order_id)

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def get_currency(self) -> str:
        return self._currency

    def get_notional_assets(self) -> frozenset[str]:
        return self._notional_assets

    def get_balance(self, asset: str) -> Decimal:
        return self._ledger.get_balance(asset)

    def get_buying_power(self, asset: str) -> Decimal:
        return self._ledger.get_buying_power(asset)

    def get_held_assets(self) -> list[str]:
        """Assets with a non-zero settled balance, sorted by name."""
        return sorted(
            asset for asset, balance in self._ledger.balances().items() if balance != _ZERO
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_notional(self, asset_pair: AssetPair) -> None:
        if asset_pair.notional_asset not in self._notional_assets:
            raise InvalidNotionalAssetError(asset_pair.notional_asset)

    def _quantity_and_notional(
        self, asset_pair: AssetPair, amount: Amount
    ) -> tuple[Decimal, Decimal]:
        """Convert *amount* at the current price into ``(quantity, notional)``."""
        price = self.get_notional_per_unit(asset_pair)
        if isinstance(amount, Quantity):
            return amount.quantity, amount.quantity * price
        return amount.notional / price, amount.notional

    def _maybe_fill(self, order_id: str) -> None:
        """Fill a pending limit order if the current price satisfies its limit."""
        order = self._orders[order_id]
        if order.status != OrderStatus.NEW or order.order_type != OrderType.LIMIT:
            return

        current = self.get_notional_per_unit(order.asset_pair)
        limit = order.limit_price
        if (
            current == limit
            or (order.side == OrderSide.BUY and current < limit)
            or (order.side == OrderSide.SELL and current > limit)
        ):
            self._fill(order_id)

    def _fill(self, order_id: str) -> None:
        """Settle *order_id* at the current price and mark it FILLED."""
        order = self._orders[order_id]
        asset_pair = order.asset_pair
        quantity, notional = self._quantity_and_notional(asset_pair, order.amount)
        quantity_asset = asset_pair.quantity_asset
        notional_asset = asset_pair.notional_asset

        if order.side == OrderSide.BUY:
            self._ledger.update_balance(notional_asset, -notional)
            self._ledger.update_balance(quantity_asset, quantity)
            self._ledger.update_buying_power(quantity_asset, quantity)
            if order.limit_price is not None:
                # Release the part of the worst-case reservation not spent.
                self._ledger.update_buying_power(
                    notional_asset, order.limit_price * quantity - notional
                )
        else:
            self._ledger.update_balance(notional_asset, notional)
            self._ledger.update_balance(quantity_asset, -quantity)
            self._ledger.update_buying_power(notional_asset, notional)

        filled = replace(
            order,
            filled_quantity=quantity,
            average_fill_price=notional / quantity,
            status=OrderStatus.FILLED,
        )
        self._orders[order_id] = filled
        logger.debug(
            "Order filled: id=%s quantity=%s price=%s",
            order_id, filled.filled_quantity, filled.average_fill_price,
        )


class SimulatedBrokerBuilder:
    """Fluent construction of a :class:`SimulatedBroker`.

    The currency is always a notional asset and starts with a zero balance.
    """

    def __init__(self, currency: str) -> None:
        self._currency = currency
        self._notional_assets: set[str] = {currency}
        self._balances: dict[str, Decimal] = {currency: _ZERO}

    def set_balance(self, balance: Decimal) -> "SimulatedBrokerBuilder":
        """Set the starting balance of the currency."""
        self._balances[self._currency] = balance
        return self

    def add_notional_asset(
        self, notional_asset: str, balance: Optional[Decimal] = None
    ) -> "SimulatedBrokerBuilder":
        """Accept *notional_asset* as a pair's notional leg, optionally funded."""
        self._notional_assets.add(notional_asset)
        if balance is not None:
            self._balances[notional_asset] = balance
        return self

    def add_balance(self, asset: str, balance: Decimal) -> "SimulatedBrokerBuilder":
        """Seed a starting balance for any asset (e.g. an existing holding)."""
        self._balances[asset] = balance
        return self

    def build(self) -> SimulatedBroker:
        return SimulatedBroker(
            self._currency,
            set(self._notional_assets),
            dict(self._balances),
        )


def _amount_value(amount: Amount) -> Decimal:
    if isinstance(amount, Quantity):
        return amount.quantity
    if isinstance(amount, Notional):
        return amount.notional
    raise TypeError(f"unsupported amount type: {type(amount).__name__}")


def _check_positive(value: Decimal, name: str) -> None:
    if value <= _ZERO:
        raise ValueError(f"{name} must be positive; got {value}")


def _reservation(
    req: OrderRequest, quantity: Decimal, notional: Decimal
) -> tuple[str, Decimal]:
    """Return ``(asset, amount)`` of buying power *req* must reserve."""
    if req.side == OrderSide.BUY:
        if req.limit_price is not None:
            return req.asset_pair.notional_asset, req.limit_price * quantity
        return req.asset_pair.notional_asset, notional
    return req.asset_pair.quantity_asset, quantity
