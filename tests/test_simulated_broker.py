"""Tests for the simulated broker.

Invariants proved here
----------------------
1. Reservation: placing an order deducts buying power but never settled
   balances; a pending limit order leaves balances untouched.
2. Settlement happens at the fill-time price, and a limit buy filling below
   its limit releases the unused part of its reservation.
3. A limit order fills as soon as a price at or through its limit is set,
   including at placement time.
4. A rejected order leaves the ledger and the order table unchanged.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from packages.irontrade.api.common import AssetPair, Notional, OrderStatus, OrderType, Quantity
from packages.irontrade.api.request import OrderRequest
from packages.irontrade.errors import (
    InsufficientBuyingPowerError,
    InvalidNotionalAssetError,
    MissingCurrencyNotionalAssetError,
    NoNotionalPerUnitError,
    OrderNotFoundError,
)
from packages.irontrade.simulated.broker import SimulatedBroker, SimulatedBrokerBuilder

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

_D = Decimal  # shorthand

GBP_USD = AssetPair.parse("GBP/USD")


def _usd_broker(balance: str = "14.1") -> SimulatedBroker:
    broker = SimulatedBrokerBuilder("USD").set_balance(_D(balance)).build()
    broker.set_notional_per_unit(GBP_USD, _D("1.31"))
    return broker


# ---------------------------------------------------------------------------
# Market orders
# ---------------------------------------------------------------------------


class TestMarketOrders:
    def test_market_buy_by_quantity_settles_immediately(self):
        broker = _usd_broker()

        order_id = broker.place_order(OrderRequest.market_buy(GBP_USD, Quantity(_D("10"))))

        order = broker.get_order(order_id)
        assert order.status == OrderStatus.FILLED
        assert order.order_type == OrderType.MARKET
        assert order.filled_quantity == _D("10")
        assert order.average_fill_price == _D("1.31")
        assert broker.get_balance("USD") == _D("1.0")
        assert broker.get_buying_power("USD") == _D("1.0")
        assert broker.get_balance("GBP") == _D("10")
        assert broker.get_buying_power("GBP") == _D("10")

    def test_market_buy_by_notional_converts_at_current_price(self):
        broker = _usd_broker()

        order_id = broker.place_order(OrderRequest.market_buy(GBP_USD, Notional(_D("13.1"))))

        assert broker.get_order(order_id).filled_quantity == _D("10")
        assert broker.get_balance("USD") == _D("1.0")
        assert broker.get_balance("GBP") == _D("10")

    def test_market_sell_credits_notional_asset(self):
        broker = (
            SimulatedBrokerBuilder("USD")
            .add_balance("GBP", _D("10"))
            .build()
        )
        broker.set_notional_per_unit(GBP_USD, _D("1.31"))

        broker.place_order(OrderRequest.market_sell(GBP_USD, Quantity(_D("4"))))

        assert broker.get_balance("GBP") == _D("6")
        assert broker.get_buying_power("GBP") == _D("6")
        assert broker.get_balance("USD") == _D("5.24")
        assert broker.get_buying_power("USD") == _D("5.24")


# ---------------------------------------------------------------------------
# Limit orders
# ---------------------------------------------------------------------------


class TestLimitOrders:
    def test_limit_buy_above_market_stays_new_with_reservation(self):
        broker = _usd_broker()

        order_id = broker.place_order(
            OrderRequest.limit_buy(GBP_USD, Quantity(_D("10")), _D("1.3"))
        )

        order = broker.get_order(order_id)
        assert order.status == OrderStatus.NEW
        assert order.filled_quantity == _D("0")
        assert order.average_fill_price is None
        assert broker.get_balance("USD") == _D("14.1")
        assert broker.get_buying_power("USD") == _D("1.1")
        assert broker.get_balance("GBP") == _D("0")

    def test_limit_buy_fills_below_limit_and_releases_unused_reservation(self):
        broker = _usd_broker()
        order_id = broker.place_order(
            OrderRequest.limit_buy(GBP_USD, Quantity(_D("10")), _D("1.3"))
        )

        broker.set_notional_per_unit(GBP_USD, _D("1.29"))

        order = broker.get_order(order_id)
        assert order.status == OrderStatus.FILLED
        assert order.average_fill_price == _D("1.29")
        assert broker.get_balance("USD") == _D("1.2")
        assert broker.get_buying_power("USD") == _D("1.2")
        assert broker.get_balance("GBP") == _D("10")
        assert broker.get_buying_power("GBP") == _D("10")

    def test_limit_buy_at_market_fills_on_placement(self):
        broker = _usd_broker()

        order_id = broker.place_order(
            OrderRequest.limit_buy(GBP_USD, Quantity(_D("10")), _D("1.31"))
        )

        assert broker.get_order(order_id).status == OrderStatus.FILLED
        assert broker.get_balance("USD") == _D("1.0")
        assert broker.get_buying_power("USD") == _D("1.0")

    def test_limit_sell_waits_for_price_above_limit(self):
        broker = SimulatedBrokerBuilder("USD").add_balance("GBP", _D("10")).build()
        broker.set_notional_per_unit(GBP_USD, _D("1.31"))
        order_id = broker.place_order(
            OrderRequest.limit_sell(GBP_USD, Quantity(_D("10")), _D("1.35"))
        )

        assert broker.get_order(order_id).status == OrderStatus.NEW
        assert broker.get_buying_power("GBP") == _D("0")
        assert broker.get_balance("GBP") == _D("10")

        broker.set_notional_per_unit(GBP_USD, _D("1.36"))

        assert broker.get_order(order_id).status == OrderStatus.FILLED
        assert broker.get_balance("GBP") == _D("0")
        assert broker.get_balance("USD") == _D("13.60")
        assert broker.get_buying_power("USD") == _D("13.60")

    def test_filled_order_is_not_filled_again(self):
        broker = _usd_broker()
        order_id = broker.place_order(
            OrderRequest.limit_buy(GBP_USD, Quantity(_D("10")), _D("1.3"))
        )
        broker.set_notional_per_unit(GBP_USD, _D("1.29"))
        broker.set_notional_per_unit(GBP_USD, _D("1.28"))

        assert broker.get_order(order_id).average_fill_price == _D("1.29")
        assert broker.get_balance("GBP") == _D("10")

    def test_notional_limit_buy_recomputes_quantity_at_fill(self):
        broker = _usd_broker()
        order_id = broker.place_order(
            OrderRequest.limit_buy(GBP_USD, Notional(_D("13")), _D("1.30"))
        )

        placed_quantity = _D("13") / _D("1.31")
        assert broker.get_order(order_id).status == OrderStatus.NEW
        assert broker.get_buying_power("USD") == _D("14.1") - _D("1.30") * placed_quantity

        broker.set_notional_per_unit(GBP_USD, _D("1.29"))

        filled_quantity = _D("13") / _D("1.29")
        order = broker.get_order(order_id)
        assert order.status == OrderStatus.FILLED
        assert order.filled_quantity == filled_quantity
        assert order.average_fill_price == _D("13") / filled_quantity
        assert broker.get_balance("USD") == _D("1.1")
        # Reserved at the placement quantity, released at the fill quantity.
        assert broker.get_buying_power("USD") == (
            _D("14.1") - _D("1.30") * placed_quantity
            + (_D("1.30") * filled_quantity - _D("13"))
        )
        assert broker.get_buying_power("USD") == _D("1.30001183501982365820462750")
        assert broker.get_buying_power("USD") > broker.get_balance("USD")
        assert broker.get_balance("GBP") == filled_quantity
        assert broker.get_buying_power("GBP") == filled_quantity

    def test_notional_limit_sell_debits_fill_time_quantity(self):
        broker = SimulatedBrokerBuilder("USD").add_balance("GBP", _D("20")).build()
        broker.set_notional_per_unit(GBP_USD, _D("1.31"))
        order_id = broker.place_order(
            OrderRequest.limit_sell(GBP_USD, Notional(_D("13")), _D("1.35"))
        )

        placed_quantity = _D("13") / _D("1.31")
        assert broker.get_order(order_id).status == OrderStatus.NEW
        assert broker.get_buying_power("GBP") == _D("20") - placed_quantity

        broker.set_notional_per_unit(GBP_USD, _D("1.40"))

        filled_quantity = _D("13") / _D("1.40")
        order = broker.get_order(order_id)
        assert order.status == OrderStatus.FILLED
        assert order.filled_quantity == filled_quantity
        assert order.average_fill_price == _D("13") / filled_quantity
        assert broker.get_balance("USD") == _D("13")
        assert broker.get_buying_power("USD") == _D("13")
        assert broker.get_balance("GBP") == _D("20") - filled_quantity
        # The sell reservation is not adjusted at fill.
        assert broker.get_buying_power("GBP") == _D("20") - placed_quantity

    def test_price_update_only_touches_orders_of_that_pair(self):
        broker = (
            SimulatedBrokerBuilder("USD")
            .set_balance(_D("100"))
            .build()
        )
        eur_usd = AssetPair.parse("EUR/USD")
        broker.set_notional_per_unit(GBP_USD, _D("1.31"))
        broker.set_notional_per_unit(eur_usd, _D("1.10"))
        gbp_id = broker.place_order(OrderRequest.limit_buy(GBP_USD, Quantity(_D("1")), _D("1.3")))
        eur_id = broker.place_order(OrderRequest.limit_buy(eur_usd, Quantity(_D("1")), _D("1.0")))

        broker.set_notional_per_unit(GBP_USD, _D("1.2"))

        assert broker.get_order(gbp_id).status == OrderStatus.FILLED
        assert broker.get_order(eur_id).status == OrderStatus.NEW


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------


class TestRejections:
    def test_insufficient_buying_power_leaves_state_untouched(self):
        broker = _usd_broker()

        with pytest.raises(InsufficientBuyingPowerError) as excinfo:
            broker.place_order(OrderRequest.market_buy(GBP_USD, Quantity(_D("11"))))

        assert excinfo.value.asset == "USD"
        assert broker.get_orders() == []
        assert broker.get_balance("USD") == _D("14.1")
        assert broker.get_buying_power("USD") == _D("14.1")

    def test_limit_reservation_counts_against_later_orders(self):
        broker = _usd_broker()
        broker.place_order(OrderRequest.limit_buy(GBP_USD, Quantity(_D("10")), _D("1.3")))

        with pytest.raises(InsufficientBuyingPowerError):
            broker.place_order(OrderRequest.market_buy(GBP_USD, Quantity(_D("1"))))

    def test_sell_without_holding_is_rejected(self):
        broker = _usd_broker()
        with pytest.raises(InsufficientBuyingPowerError) as excinfo:
            broker.place_order(OrderRequest.market_sell(GBP_USD, Quantity(_D("1"))))
        assert excinfo.value.asset == "GBP"

    def test_unpriced_pair_is_rejected(self):
        broker = _usd_broker()
        with pytest.raises(NoNotionalPerUnitError):
            broker.place_order(
                OrderRequest.market_buy(AssetPair.parse("EUR/USD"), Quantity(_D("1")))
            )

    def test_non_notional_leg_is_rejected(self):
        broker = _usd_broker()
        usd_gbp = AssetPair.parse("USD/GBP")
        with pytest.raises(InvalidNotionalAssetError) as excinfo:
            broker.set_notional_per_unit(usd_gbp, _D("0.76"))
        assert excinfo.value.asset == "GBP"
        with pytest.raises(InvalidNotionalAssetError):
            broker.get_notional_per_unit(usd_gbp)
        with pytest.raises(InvalidNotionalAssetError):
            broker.place_order(OrderRequest.market_buy(usd_gbp, Quantity(_D("1"))))

    @pytest.mark.parametrize("amount", [Quantity(_D("0")), Notional(_D("-1"))])
    def test_non_positive_amount_is_rejected(self, amount):
        broker = _usd_broker()
        with pytest.raises(ValueError):
            broker.place_order(OrderRequest.market_buy(GBP_USD, amount))

    def test_non_positive_price_is_rejected(self):
        broker = _usd_broker()
        with pytest.raises(ValueError):
            broker.set_notional_per_unit(GBP_USD, _D("0"))
        assert broker.get_notional_per_unit(GBP_USD) == _D("1.31")

    def test_unknown_order_id(self):
        broker = _usd_broker()
        with pytest.raises(OrderNotFoundError) as excinfo:
            broker.get_order("missing")
        assert excinfo.value.order_id == "missing"
        assert "missing" in str(excinfo.value)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_currency_must_be_notional_asset(self):
        with pytest.raises(MissingCurrencyNotionalAssetError):
            SimulatedBroker("USD", {"GBP"})

    def test_builder_defaults(self):
        broker = SimulatedBrokerBuilder("USD").build()
        assert broker.get_currency() == "USD"
        assert broker.get_notional_assets() == frozenset({"USD"})
        assert broker.get_balance("USD") == _D("0")

    def test_builder_adds_funded_notional_assets(self):
        broker = (
            SimulatedBrokerBuilder("GBP")
            .set_balance(_D("100"))
            .add_notional_asset("USDT", _D("50"))
            .add_notional_asset("EUR")
            .build()
        )
        assert broker.get_notional_assets() == frozenset({"GBP", "USDT", "EUR"})
        assert broker.get_balance("USDT") == _D("50")
        assert broker.get_balance("EUR") == _D("0")
        assert broker.get_held_assets() == ["GBP", "USDT"]

    def test_negative_starting_balance_blocks_buys(self):
        broker = SimulatedBrokerBuilder("USD").set_balance(_D("-5")).build()
        broker.set_notional_per_unit(GBP_USD, _D("1.31"))

        assert broker.get_balance("USD") == _D("-5")
        assert broker.get_buying_power("USD") == _D("-5")
        with pytest.raises(InsufficientBuyingPowerError):
            broker.place_order(OrderRequest.market_buy(GBP_USD, Quantity(_D("0.01"))))

    def test_missing_price_raises(self):
        broker = SimulatedBrokerBuilder("USD").build()
        with pytest.raises(NoNotionalPerUnitError) as excinfo:
            broker.get_notional_per_unit(GBP_USD)
        assert excinfo.value.asset_pair == GBP_USD
