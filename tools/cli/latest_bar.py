#!/usr/bin/env python3
"""Fetch the latest completed one-minute bar for a pair from the live venue.

  python -m irontrade latest-bar --pair BTC/USD [--location eu-1]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    from packages.irontrade.alpaca.market import DEFAULT_CRYPTO_LOCATION

    parser = argparse.ArgumentParser(
        prog="irontrade latest-bar",
        description="Print the latest completed one-minute bar as JSON.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    parser.add_argument("--pair", required=True, metavar="QUANTITY/NOTIONAL", help="Asset pair, e.g. BTC/USD.")
    parser.add_argument(
        "--location",
        default=DEFAULT_CRYPTO_LOCATION,
        help=f"Crypto data location (default: {DEFAULT_CRYPTO_LOCATION}).",
    )
    return parser


def main(argv: list[str]) -> int:
    """CLI entry point.  Returns exit code (0 = success)."""
    from packages.irontrade.alpaca.market import AlpacaMarket
    from packages.irontrade.api.common import AssetPair
    from packages.irontrade.errors import IronTradeError

    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        asset_pair = AssetPair.parse(args.pair)
        bar = AlpacaMarket(location=args.location).get_latest_bar(asset_pair)
    except IronTradeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(bar.to_dict() if bar is not None else None, indent=2))
    return 0
