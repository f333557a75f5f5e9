"""Module entrypoint for running irontrade CLI commands.

Usage: python -m irontrade <command> [options]
"""

from __future__ import annotations

import sys
from typing import Optional

from tools.cli.latest_bar import main as latest_bar_main
from tools.cli.simulate import main as simulate_main


def print_usage() -> None:
    """Print CLI usage information."""
    print("irontrade - uniform trading API over live and simulated venues")
    print("")
    print("Usage: irontrade <command> [options]")
    print("       python -m irontrade <command> [options]")
    print("")
    print("Commands:")
    print("  simulate          Replay CSV bars through the simulated broker and place one order")
    print("  latest-bar        Fetch the latest completed one-minute bar from the live venue")
    print("")
    print("Options:")
    print("  -h, --help        Show this help message")
    print("  --version         Show version information")
    print("")
    print("Examples:")
    print("  irontrade simulate --bars bars.csv --config sim.json --pair AVAX/GBP \\")
    print("      --buy --quantity 10 --start 2025-12-17T18:25:00Z --until 2025-12-17T18:30:00Z")
    print("  irontrade latest-bar --pair BTC/USD")


def print_version() -> None:
    """Print version information."""
    from irontrade import __version__
    print(f"irontrade {__version__}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entrypoint."""
    if argv is None:
        argv = sys.argv[1:]

    if len(argv) < 1:
        print_usage()
        return 1

    command = argv[0]

    if command in ("-h", "--help"):
        print_usage()
        return 0

    if command in ("-v", "--version"):
        print_version()
        return 0

    if command == "simulate":
        return simulate_main(argv[1:])
    if command == "latest-bar":
        return latest_bar_main(argv[1:])

    print(f"Unknown command: {command}", file=sys.stderr)
    print("Run 'irontrade --help' for usage information.", file=sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
