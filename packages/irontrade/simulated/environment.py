"""SimulatedEnvironment: time-driven market simulation over historical bars.

Prices come from a :class:`BarDataSource` sampled at the context clock's
"now": each tracked pair is priced at the midpoint of its current bar
(``(low + high) / 2``).  The environment has no background thread; it catches
up lazily.  Every client call first runs :meth:`SimulatedEnvironment.update`,
which replays one pass per ``refresh_interval`` elapsed since the previous
update plus a final pass at "now", so pending limit orders are re-evaluated
before the caller sees any state.

Market data is look-ahead safe: :meth:`get_latest_bar` never returns a bar
whose window has not closed yet, because a real venue only publishes an
aggregated bar once it is complete.

Lifecycle::

    env = SimulatedEnvironmentBuilder(context, client).set_asset_pairs_to_trade({pair}).build()
    env.init()                       # exactly once
    env.place_order(req)             # implicit update() first
    env.get_order(order_id)          # implicit update() first
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..api.client import DEFAULT_BAR_DURATION, Environment
from ..api.common import Account, AssetPair, Bar, Order
from ..api.request import OrderRequest
from ..errors import AlreadyInitializedError, NotInitializedError
from .client import SimulatedClient
from .context import SimulatedContext

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = timedelta(seconds=30)


class SimulatedEnvironment(Environment):
    """Simulated :class:`Environment`.

    Thread-safety: not thread-safe; designed for a single caller.
    """

    def __init__(
        self,
        context: SimulatedContext,
        client: SimulatedClient,
        asset_pairs_to_trade: Iterable[AssetPair] = (),
        bar_duration: timedelta = DEFAULT_BAR_DURATION,
        refresh_interval: timedelta = DEFAULT_REFRESH_INTERVAL,
    ) -> None:
        if bar_duration <= timedelta(0):
            raise ValueError(f"bar_duration must be positive; got {bar_duration}")
        if refresh_interval <= timedelta(0):
            raise ValueError(f"refresh_interval must be positive; got {refresh_interval}")

        self._context = context
        self._client = client
        self._asset_pairs_to_trade = frozenset(asset_pairs_to_trade)
        self._bar_duration = bar_duration
        self._refresh_interval = refresh_interval
        self._last_processed_time: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def client(self) -> SimulatedClient:
        return self._client

    @property
    def last_processed_time(self) -> Optional[datetime]:
        return self._last_processed_time

    def init(self) -> None:
        """Start the simulation at the clock's current time.

        Must be called once after construction and before any other call.

        Raises:
            AlreadyInitializedError: called a second time.
        """
        if self._last_processed_time is not None:
            raise AlreadyInitializedError()
        self._last_processed_time = self._context.clock.now()
        logger.debug("Environment initialized at %s", self._last_processed_time)
        self.update()

    def update(self) -> None:
        """Catch the broker's prices up to the clock's current time.

        Raises:
            NotInitializedError: ``init()`` was never called.
        """
        if self._last_processed_time is None:
            raise NotInitializedError()

        now = self._context.clock.now()
        t = self._last_processed_time
        passes = 0
        while t <= now:
            self._refresh_prices(now)
            passes += 1
            if t == now:
                break
            t = min(t + self._refresh_interval, now)

        logger.debug(
            "Environment updated: from=%s to=%s passes=%d",
            self._last_processed_time, now, passes,
        )
        self._last_processed_time = now

    def _refresh_prices(self, at: datetime) -> None:
        source = self._context.bar_data_source
        for asset_pair in sorted(self._asset_pairs_to_trade, key=str):
            bar = source.get_bar(asset_pair, at, self._bar_duration)
            if bar is not None:
                self._client.set_notional_per_unit(asset_pair, bar.mid)

    # ------------------------------------------------------------------
    # Client
    # ------------------------------------------------------------------

    def place_order(self, req: OrderRequest) -> str:
        self.update()
        return self._client.place_order(req)

    def get_orders(self) -> list[Order]:
        self.update()
        return self._client.get_orders()

    def get_order(self, order_id: str) -> Order:
        self.update()
        return self._client.get_order(order_id)

    def get_account(self) -> Account:
        self.update()
        return self._client.get_account()

    # ------------------------------------------------------------------
    # Market
    # ------------------------------------------------------------------

    def get_latest_bar(
        self,
        asset_pair: AssetPair,
        bar_duration: timedelta = DEFAULT_BAR_DURATION,
    ) -> Optional[Bar]:
        """Return the latest bar whose window has closed by the clock's "now".

        If the bar found at "now" is still forming, the lookup is retried
        once at ``now - bar_duration``.

        Raises:
            NotInitializedError: ``init()`` was never called.
        """
        if self._last_processed_time is None:
            raise NotInitializedError()

        now = self._context.clock.now()
        source = self._context.bar_data_source
        bar = source.get_bar(asset_pair, now, bar_duration)
        if bar is None:
            return None
        if bar.date_time + bar_duration > now:
            return source.get_bar(asset_pair, now - bar_duration, bar_duration)
        return bar


class SimulatedEnvironmentBuilder:
    """Fluent construction of a :class:`SimulatedEnvironment`."""

    def __init__(self, context: SimulatedContext, client: SimulatedClient) -> None:
        self._context = context
        self._client = client
        self._asset_pairs_to_trade: set[AssetPair] = set()
        self._bar_duration = DEFAULT_BAR_DURATION
        self._refresh_interval = DEFAULT_REFRESH_INTERVAL

    def set_asset_pairs_to_trade(
        self, asset_pairs: Iterable[AssetPair]
    ) -> "SimulatedEnvironmentBuilder":
        self._asset_pairs_to_trade = set(asset_pairs)
        return self

    def set_bar_duration(self, bar_duration: timedelta) -> "SimulatedEnvironmentBuilder":
        self._bar_duration = bar_duration
        return self

    def set_refresh_interval(self, refresh_interval: timedelta) -> "SimulatedEnvironmentBuilder":
        self._refresh_interval = refresh_interval
        return self

    def build(self) -> SimulatedEnvironment:
        return SimulatedEnvironment(
            self._context,
            self._client,
            asset_pairs_to_trade=self._asset_pairs_to_trade,
            bar_duration=self._bar_duration,
            refresh_interval=self._refresh_interval,
        )
