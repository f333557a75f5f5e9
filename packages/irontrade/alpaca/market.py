"""Live Alpaca crypto market data and the live :class:`Environment`."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

import requests

from ..api.client import DEFAULT_BAR_DURATION, Client, Environment, Market
from ..api.common import Account, AssetPair, Bar, Order
from ..api.request import OrderRequest
from ..errors import LiveApiError
from ..http_client import HttpClient
from .converters import bar_from_payload

logger = logging.getLogger(__name__)

DEFAULT_DATA_API_BASE = "https://data.alpaca.markets"
DEFAULT_CRYPTO_LOCATION = "eu-1"


class AlpacaMarket(Market):
    """Latest completed bars from the Alpaca crypto data API.

    The endpoint only serves one-minute bars; other durations are rejected.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_DATA_API_BASE,
        location: str = DEFAULT_CRYPTO_LOCATION,
        timeout: float = 20.0,
    ) -> None:
        self.client = HttpClient(base_url=base_url, timeout=timeout)
        self.location = location

    def get_latest_bar(
        self,
        asset_pair: AssetPair,
        bar_duration: timedelta = DEFAULT_BAR_DURATION,
    ) -> Optional[Bar]:
        if bar_duration != DEFAULT_BAR_DURATION:
            raise ValueError(f"only one-minute bars are available live; got {bar_duration}")

        symbol = str(asset_pair)
        try:
            body = self.client.get_json(
                f"/v1beta3/crypto/{self.location}/latest/bars",
                params={"symbols": symbol},
            )
        except requests.exceptions.RequestException as exc:
            raise LiveApiError(f"Alpaca market data request failed: {exc}") from exc

        bar = (body or {}).get("bars", {}).get(symbol)
        if bar is None:
            logger.debug("No latest bar returned for %s", symbol)
            return None
        return bar_from_payload(bar)


class LiveEnvironment(Environment):
    """Live :class:`Environment` composed of a client and a market."""

    def __init__(self, client: Client, market: Optional[Market] = None) -> None:
        self._client = client
        self._market = market if market is not None else AlpacaMarket()

    def place_order(self, req: OrderRequest) -> str:
        return self._client.place_order(req)

    def get_orders(self) -> list[Order]:
        return self._client.get_orders()

    def get_order(self, order_id: str) -> Order:
        return self._client.get_order(order_id)

    def get_account(self) -> Account:
        return self._client.get_account()

    def get_latest_bar(
        self,
        asset_pair: AssetPair,
        bar_duration: timedelta = DEFAULT_BAR_DURATION,
    ) -> Optional[Bar]:
        return self._market.get_latest_bar(asset_pair, bar_duration)
