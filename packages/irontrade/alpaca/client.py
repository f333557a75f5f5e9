"""Live Alpaca trading client (REST/JSON).

Thin protocol translation only: every call maps to one Alpaca v2 endpoint and
its payload is converted with :mod:`.converters`.  Transient HTTP failures
are retried by :class:`HttpClient`; the venue's answers are never second
guessed.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import requests

from ..api.client import Client
from ..api.common import Account, Order
from ..api.request import OrderRequest
from ..config_loader import ConfigLoadError
from ..errors import LiveApiError, OrderNotFoundError
from ..http_client import HttpClient
from .converters import account_from_payload, order_from_payload, order_request_to_payload

logger = logging.getLogger(__name__)

DEFAULT_TRADING_API_BASE = "https://paper-api.alpaca.markets"

ENV_KEY_ID = "APCA_API_KEY_ID"
ENV_SECRET_KEY = "APCA_API_SECRET_KEY"
ENV_BASE_URL = "APCA_API_BASE_URL"


@dataclass(frozen=True)
class AlpacaCredentials:
    key_id: str
    secret_key: str
    base_url: str = DEFAULT_TRADING_API_BASE

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AlpacaCredentials":
        """Read credentials from ``APCA_API_KEY_ID`` / ``APCA_API_SECRET_KEY``.

        Raises:
            ConfigLoadError: either key is missing or blank.
        """
        env = os.environ if environ is None else environ
        key_id = (env.get(ENV_KEY_ID) or "").strip()
        secret_key = (env.get(ENV_SECRET_KEY) or "").strip()
        missing = [
            name for name, value in ((ENV_KEY_ID, key_id), (ENV_SECRET_KEY, secret_key))
            if not value
        ]
        if missing:
            raise ConfigLoadError(f"missing Alpaca credentials: {', '.join(missing)}")
        base_url = (env.get(ENV_BASE_URL) or "").strip() or DEFAULT_TRADING_API_BASE
        return cls(key_id=key_id, secret_key=secret_key, base_url=base_url)

    def headers(self) -> dict[str, str]:
        return {"APCA-API-KEY-ID": self.key_id, "APCA-API-SECRET-KEY": self.secret_key}


class AlpacaClient(Client):
    """:class:`Client` backed by the Alpaca trading API."""

    def __init__(self, credentials: AlpacaCredentials, timeout: float = 20.0) -> None:
        self.client = HttpClient(
            base_url=credentials.base_url,
            timeout=timeout,
            default_headers=credentials.headers(),
        )

    def place_order(self, req: OrderRequest) -> str:
        payload = order_request_to_payload(req)
        logger.debug("Placing Alpaca order: %s", payload)
        body = self._call(lambda: self.client.post_json("/v2/orders", payload))
        return order_from_payload(body).order_id

    def get_orders(self) -> list[Order]:
        body = self._call(lambda: self.client.get_json("/v2/orders", params={"status": "all"}))
        return [order_from_payload(item) for item in body or []]

    def get_order(self, order_id: str) -> Order:
        body = self._call(
            lambda: self.client.get_json(f"/v2/orders/{order_id}"),
            not_found=lambda: OrderNotFoundError(order_id),
        )
        return order_from_payload(body)

    def get_account(self) -> Account:
        account = self._call(lambda: self.client.get_json("/v2/account"))
        positions = self._call(lambda: self.client.get_json("/v2/positions"))
        return account_from_payload(account, positions or [])

    @staticmethod
    def _call(
        fn: Callable[[], Any],
        not_found: Optional[Callable[[], Exception]] = None,
    ) -> Any:
        try:
            return fn()
        except requests.exceptions.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            if status == 404 and not_found is not None:
                raise not_found() from exc
            raise LiveApiError(f"Alpaca request failed: {exc}", status_code=status) from exc
        except requests.exceptions.RequestException as exc:
            raise LiveApiError(f"Alpaca request failed: {exc}") from exc
