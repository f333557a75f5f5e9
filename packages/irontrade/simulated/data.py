"""Historical bar sources for the simulated environment.

A :class:`BarDataSource` answers "which bar was the latest one at time T".
Sources hold bars of a single duration; the ``bar_duration`` argument is part
of the query contract so that multi-resolution sources can honour it.

CSV format (header required)::

    symbol,date_time,open,high,low,close
    AVAX/GBP,2025-12-17T18:27:00+00:00,8.70,8.95,8.60,8.81

Naive timestamps are interpreted as UTC.
"""

from __future__ import annotations

import bisect
import csv
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

from ..api.common import AssetPair, Bar
from ..errors import BarDataError, InvalidAssetPairError

logger = logging.getLogger(__name__)

_REQUIRED_COLUMNS = ("symbol", "date_time", "open", "high", "low", "close")


class BarDataSource(ABC):
    @abstractmethod
    def get_bar(
        self,
        asset_pair: AssetPair,
        date_time: datetime,
        bar_duration: timedelta,
    ) -> Optional[Bar]:
        """Return the most recent bar starting at or before *date_time*, or None."""


class InMemoryBarDataSource(BarDataSource):
    """Bars held in memory, indexed per pair by start time."""

    def __init__(self, bars_by_pair: Optional[Mapping[AssetPair, Iterable[Bar]]] = None) -> None:
        self._bars: dict[AssetPair, list[Bar]] = {}
        self._times: dict[AssetPair, list[datetime]] = {}
        for asset_pair, bars in (bars_by_pair or {}).items():
            self.add_bars(asset_pair, bars)

    def add_bars(self, asset_pair: AssetPair, bars: Iterable[Bar]) -> None:
        merged = sorted(
            list(self._bars.get(asset_pair, [])) + list(bars),
            key=lambda bar: bar.date_time,
        )
        self._bars[asset_pair] = merged
        self._times[asset_pair] = [bar.date_time for bar in merged]

    def asset_pairs(self) -> list[AssetPair]:
        return sorted(self._bars, key=str)

    def get_bar(
        self,
        asset_pair: AssetPair,
        date_time: datetime,
        bar_duration: timedelta,
    ) -> Optional[Bar]:
        times = self._times.get(asset_pair)
        if not times:
            return None
        idx = bisect.bisect_right(times, date_time)
        if idx == 0:
            return None
        return self._bars[asset_pair][idx - 1]


class CsvBarDataSource(InMemoryBarDataSource):
    """In-memory source loaded from a CSV file."""

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "CsvBarDataSource":
        """Load bars from *path*.

        Raises:
            BarDataError: file missing, required column absent, or a row
                          with an unparseable pair, timestamp or price.
        """
        p = Path(path)
        try:
            fh = open(p, encoding="utf-8-sig", newline="")
        except FileNotFoundError as exc:
            raise BarDataError(f"bar file not found: {p}") from exc

        bars_by_pair: dict[AssetPair, list[Bar]] = defaultdict(list)
        with fh:
            reader = csv.DictReader(fh)
            missing = [c for c in _REQUIRED_COLUMNS if c not in (reader.fieldnames or [])]
            if missing:
                raise BarDataError(f"bar file {p} is missing columns: {', '.join(missing)}")
            # Header is line 1.
            for lineno, row in enumerate(reader, start=2):
                asset_pair, bar = _parse_row(row, lineno, p)
                bars_by_pair[asset_pair].append(bar)

        logger.debug(
            "Loaded bars from %s: %s",
            p, {str(pair): len(bars) for pair, bars in bars_by_pair.items()},
        )
        return cls(bars_by_pair)


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_row(row: dict, lineno: int, path: Path) -> tuple[AssetPair, Bar]:
    try:
        asset_pair = AssetPair.parse((row.get("symbol") or "").strip())
        date_time = parse_timestamp(row.get("date_time") or "")
        prices = {k: Decimal((row.get(k) or "").strip()) for k in ("open", "high", "low", "close")}
    except (InvalidAssetPairError, ValueError, InvalidOperation) as exc:
        raise BarDataError(f"{path}:{lineno}: malformed bar row: {exc}") from exc
    return asset_pair, Bar(date_time=date_time, **prices)
