#!/usr/bin/env python3
"""Simulate CLI: replay historical bars through the simulated broker.

Commands
--------
  python -m irontrade simulate --bars <PATH/bars.csv> --config <PATH/sim.json> \\
      --pair AVAX/GBP --buy --quantity 10 [--limit 8.75] \\
      --start 2025-12-17T18:25:00Z [--until 2025-12-17T18:30:00Z] [--step-seconds 30]

The order is placed at ``--start``; the clock is then advanced to ``--until``
in ``--step-seconds`` increments so pending limit orders see every price.
The final order and account are printed as JSON on stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

logger = logging.getLogger(__name__)


def _parse_decimal_arg(raw: Any, *, flag_name: str) -> Decimal:
    try:
        value = Decimal(str(raw))
    except InvalidOperation as exc:
        raise ValueError(f"invalid {flag_name}: {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{flag_name} must be positive.")
    return value


def _parse_time_arg(raw: str, *, flag_name: str) -> datetime:
    from packages.irontrade.simulated.data import parse_timestamp

    try:
        return parse_timestamp(raw)
    except ValueError as exc:
        raise ValueError(f"invalid {flag_name}: {raw!r} (expected ISO-8601)") from exc


def _simulate(args: argparse.Namespace) -> int:
    from packages.irontrade.api.common import AssetPair, Notional, Quantity
    from packages.irontrade.api.request import OrderRequest
    from packages.irontrade.config_loader import ConfigLoadError, load_simulation_config
    from packages.irontrade.errors import IronTradeError
    from packages.irontrade.simulated.client import SimulatedClient
    from packages.irontrade.simulated.context import SimulatedContext
    from packages.irontrade.simulated.data import CsvBarDataSource
    from packages.irontrade.simulated.environment import SimulatedEnvironmentBuilder
    from packages.irontrade.simulated.time import ManualClock

    # -- Validate inputs -------------------------------------------------------
    try:
        config = load_simulation_config(
            config_path=args.config,
            config_json=args.config_json,
        )
        asset_pair = AssetPair.parse(args.pair)
        if args.quantity is not None:
            amount = Quantity(_parse_decimal_arg(args.quantity, flag_name="--quantity"))
        else:
            amount = Notional(_parse_decimal_arg(args.notional, flag_name="--notional"))
        limit_price: Optional[Decimal] = None
        if args.limit is not None:
            limit_price = _parse_decimal_arg(args.limit, flag_name="--limit")
        start = _parse_time_arg(args.start, flag_name="--start")
        until = _parse_time_arg(args.until, flag_name="--until") if args.until else start
        if until < start:
            raise ValueError("--until must not be earlier than --start.")
        step = (
            timedelta(seconds=args.step_seconds)
            if args.step_seconds is not None
            else config.refresh_interval
        )
        if step <= timedelta(0):
            raise ValueError("--step-seconds must be positive.")
        source = CsvBarDataSource.from_path(args.bars)
    except (ConfigLoadError, IronTradeError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"[irontrade simulate] bars      : {args.bars}", file=sys.stderr)
    print(f"[irontrade simulate] pair      : {asset_pair}", file=sys.stderr)
    print(f"[irontrade simulate] side      : {'buy' if args.buy else 'sell'}", file=sys.stderr)
    print(f"[irontrade simulate] amount    : {amount}", file=sys.stderr)
    print(f"[irontrade simulate] limit     : {limit_price}", file=sys.stderr)
    print(f"[irontrade simulate] window    : {start.isoformat()} -> {until.isoformat()}", file=sys.stderr)

    # -- Build environment -----------------------------------------------------
    clock = ManualClock(start)
    env = (
        SimulatedEnvironmentBuilder(
            SimulatedContext(bar_data_source=source, clock=clock),
            SimulatedClient(config.build_broker()),
        )
        .set_asset_pairs_to_trade(set(config.asset_pairs) | {asset_pair})
        .set_bar_duration(config.bar_duration)
        .set_refresh_interval(config.refresh_interval)
        .build()
    )

    if limit_price is None:
        req = (OrderRequest.market_buy if args.buy else OrderRequest.market_sell)(asset_pair, amount)
    elif args.buy:
        req = OrderRequest.limit_buy(asset_pair, amount, limit_price)
    else:
        req = OrderRequest.limit_sell(asset_pair, amount, limit_price)

    # -- Run -------------------------------------------------------------------
    try:
        env.init()
        order_id = env.place_order(req)
        while clock.now() < until:
            clock.advance(min(step, until - clock.now()))
            env.update()
        order = env.get_order(order_id)
        account = env.get_account()
    except IronTradeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logger.info("Simulation finished at %s: order %s is %s", clock.now(), order_id, order.status)
    result = {
        "time": clock.now().isoformat(),
        "order": order.to_dict(),
        "account": account.to_dict(),
    }
    print(json.dumps(result, indent=2))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="irontrade simulate",
        description=(
            "Replay historical bars through the simulated broker, "
            "place one order and report its outcome."
        ),
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    parser.add_argument(
        "--bars",
        required=True,
        metavar="PATH",
        help="CSV file with columns symbol,date_time,open,high,low,close.",
    )
    cfg = parser.add_mutually_exclusive_group(required=True)
    cfg.add_argument("--config", default=None, metavar="PATH", help="Simulation config JSON file.")
    cfg.add_argument("--config-json", default=None, metavar="JSON", help="Inline simulation config JSON.")
    parser.add_argument("--pair", required=True, metavar="QUANTITY/NOTIONAL", help="Asset pair to trade.")

    side = parser.add_mutually_exclusive_group(required=True)
    side.add_argument("--buy", action="store_true", help="Place a buy order.")
    side.add_argument("--sell", action="store_true", help="Place a sell order.")

    size = parser.add_mutually_exclusive_group(required=True)
    size.add_argument("--quantity", default=None, help="Order size in units of the quantity asset.")
    size.add_argument("--notional", default=None, help="Order size as a value in the notional asset.")

    parser.add_argument("--limit", default=None, help="Limit price; omit for a market order.")
    parser.add_argument("--start", required=True, metavar="ISO", help="Simulated time at which the order is placed.")
    parser.add_argument(
        "--until",
        default=None,
        metavar="ISO",
        help="Simulated time to advance to before reporting (default: --start).",
    )
    parser.add_argument(
        "--step-seconds",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Clock step while advancing (default: config refresh interval).",
    )
    return parser


def main(argv: list[str]) -> int:
    """CLI entry point.  Returns exit code (0 = success)."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )
    return _simulate(args)
