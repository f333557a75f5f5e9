"""SimulatedClient: the generic :class:`Client` interface over a SimulatedBroker."""

from __future__ import annotations

import logging
from decimal import Decimal

from ..api.client import Client
from ..api.common import Account, AssetPair, OpenPosition, Order
from ..api.request import OrderRequest
from ..errors import NoNotionalPerUnitError
from .broker import SimulatedBroker

logger = logging.getLogger(__name__)


class SimulatedClient(Client):
    """Client facade; prices are pushed in via :meth:`set_notional_per_unit`."""

    def __init__(self, broker: SimulatedBroker) -> None:
        self._broker = broker

    @property
    def broker(self) -> SimulatedBroker:
        return self._broker

    def set_notional_per_unit(self, asset_pair: AssetPair, notional_per_unit: Decimal) -> None:
        self._broker.set_notional_per_unit(asset_pair, notional_per_unit)

    def place_order(self, req: OrderRequest) -> str:
        return self._broker.place_order(req)

    def get_orders(self) -> list[Order]:
        return self._broker.get_orders()

    def get_order(self, order_id: str) -> Order:
        return self._broker.get_order(order_id)

    def get_account(self) -> Account:
        currency = self._broker.get_currency()
        open_positions = {
            asset: self._open_position(asset)
            for asset in self._broker.get_held_assets()
            if asset != currency
        }
        return Account(
            currency=currency,
            cash=self._broker.get_balance(currency),
            buying_power=self._broker.get_buying_power(currency),
            open_positions=open_positions,
        )

    def _open_position(self, asset: str) -> OpenPosition:
        """Value *asset* at its ``asset/currency`` price when one is known."""
        quantity = self._broker.get_balance(asset)
        pair = AssetPair(quantity_asset=asset, notional_asset=self._broker.get_currency())
        try:
            market_value = quantity * self._broker.get_notional_per_unit(pair)
        except NoNotionalPerUnitError:
            logger.debug("No %s price; reporting %s position without market value", pair, asset)
            market_value = None
        return OpenPosition(
            asset_symbol=asset,
            quantity=quantity,
            average_entry_price=None,
            market_value=market_value,
        )
