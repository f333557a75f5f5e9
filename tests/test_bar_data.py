"""Offline tests for in-memory and CSV bar sources."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from packages.irontrade.api.common import AssetPair
from packages.irontrade.errors import BarDataError
from packages.irontrade.simulated.data import CsvBarDataSource, parse_timestamp
from packages.irontrade.simulated.time import ManualClock

_D = Decimal

AVAX_GBP = AssetPair.parse("AVAX/GBP")
ONE_MINUTE = timedelta(minutes=1)


def _utc(hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(2025, 12, 17, hour, minute, second, tzinfo=timezone.utc)


def _write_csv(tmp_path: Path, body: str, *, encoding: str = "utf-8") -> Path:
    path = tmp_path / "bars.csv"
    path.write_text(body, encoding=encoding)
    return path


_CSV = (
    "symbol,date_time,open,high,low,close\n"
    "AVAX/GBP,2025-12-17T18:26:00Z,8.60,8.90,8.50,8.80\n"
    "AVAX/GBP,2025-12-17T18:25:00+00:00,8.70,8.95,8.60,8.81\n"
    "BTC/GBP,2025-12-17T18:25:00,70000,70100,69900,70050\n"
)


class TestCsvBarDataSource:
    def test_rows_are_grouped_and_sorted_per_pair(self, tmp_path):
        source = CsvBarDataSource.from_path(_write_csv(tmp_path, _CSV))

        assert [str(p) for p in source.asset_pairs()] == ["AVAX/GBP", "BTC/GBP"]
        bar = source.get_bar(AVAX_GBP, _utc(18, 25, 59), ONE_MINUTE)
        assert bar is not None
        assert bar.date_time == _utc(18, 25)
        assert bar.high == _D("8.95")

    def test_latest_bar_at_or_before_time(self, tmp_path):
        source = CsvBarDataSource.from_path(_write_csv(tmp_path, _CSV))

        assert source.get_bar(AVAX_GBP, _utc(18, 26), ONE_MINUTE).date_time == _utc(18, 26)
        assert source.get_bar(AVAX_GBP, _utc(19, 0), ONE_MINUTE).date_time == _utc(18, 26)
        assert source.get_bar(AVAX_GBP, _utc(18, 24, 59), ONE_MINUTE) is None
        assert source.get_bar(AssetPair.parse("ETH/GBP"), _utc(19, 0), ONE_MINUTE) is None

    def test_naive_timestamps_are_utc(self, tmp_path):
        source = CsvBarDataSource.from_path(_write_csv(tmp_path, _CSV))
        bar = source.get_bar(AssetPair.parse("BTC/GBP"), _utc(18, 25), ONE_MINUTE)
        assert bar.date_time.tzinfo is not None
        assert bar.date_time == _utc(18, 25)

    def test_utf8_bom_is_accepted(self, tmp_path):
        path = _write_csv(tmp_path, _CSV, encoding="utf-8-sig")
        assert len(CsvBarDataSource.from_path(path).asset_pairs()) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(BarDataError, match="not found"):
            CsvBarDataSource.from_path(tmp_path / "nope.csv")

    def test_missing_column(self, tmp_path):
        path = _write_csv(tmp_path, "symbol,date_time,open,high,low\n")
        with pytest.raises(BarDataError, match="close"):
            CsvBarDataSource.from_path(path)

    @pytest.mark.parametrize(
        "row",
        [
            "AVAXGBP,2025-12-17T18:27:00Z,1,2,1,2",
            "AVAX/GBP,yesterday,1,2,1,2",
            "AVAX/GBP,2025-12-17T18:27:00Z,1,two,1,2",
        ],
    )
    def test_malformed_row_reports_line_number(self, tmp_path, row):
        body = _CSV + row + "\n"
        path = _write_csv(tmp_path, body)
        with pytest.raises(BarDataError, match=":5:"):
            CsvBarDataSource.from_path(path)


class TestTime:
    def test_parse_timestamp_normalises_offsets(self):
        value = parse_timestamp("2025-12-17T19:25:00+01:00")
        assert value == _utc(18, 25)
        assert value.utcoffset() == timedelta(0)

    def test_manual_clock_advances(self):
        clock = ManualClock(datetime(2025, 12, 17, 18, 25))
        assert clock.now() == _utc(18, 25)
        assert clock.advance(timedelta(minutes=2)) == _utc(18, 27)
        clock.set(_utc(9, 0))
        assert clock.now() == _utc(9, 0)
