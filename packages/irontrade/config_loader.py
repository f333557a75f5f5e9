"""Config loading for simulation runs (UTF-8 BOM tolerant).

PowerShell 5.1 writes UTF-8 BOM by default when using Out-File, which plain
``json.loads(path.read_text(encoding="utf-8"))`` rejects.  All config loading
goes through this module so BOM handling and validation live in one place.

Simulation config schema::

    {
      "currency": "GBP",
      "balances": {"GBP": "100", "AVAX": "2"},
      "notional_assets": ["GBP", "USDT"],
      "asset_pairs": ["AVAX/GBP"],
      "bar_duration_seconds": 60,
      "refresh_interval_seconds": 30
    }

Only ``currency`` is required.  Balances are strings (or numbers) parsed as
Decimal; the currency is always a notional asset.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Union

from .api.common import AssetPair
from .errors import InvalidAssetPairError
from .simulated.broker import SimulatedBroker


class ConfigLoadError(ValueError):
    """Raised when config loading or parsing fails."""


def load_json_from_path(path: Union[str, Path]) -> dict:
    """Load a JSON file, accepting UTF-8 BOM (as produced by PowerShell 5.1).

    Raises:
        ConfigLoadError: If the file is not found or contains invalid JSON.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise ConfigLoadError(f"config file not found: {p}") from exc

    try:
        result = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigLoadError(f"config file is not valid JSON ({p}): {exc}") from exc

    if not isinstance(result, dict):
        raise ConfigLoadError(
            f"config file must contain a JSON object, got {type(result).__name__}: {p}"
        )
    return result


def load_json_from_string(raw: str) -> dict:
    """Parse a JSON string into a dict.

    Strips surrounding whitespace, one pair of outer single quotes, and a
    leading BOM character so strings from PowerShell pipelines parse.

    Raises:
        ConfigLoadError: If the string is not valid JSON or not an object.
    """
    original_raw = raw
    raw = raw.strip()
    if len(raw) >= 2 and raw.startswith("'") and raw.endswith("'"):
        raw = raw[1:-1].strip()
    if raw.startswith("\ufeff"):
        raw = raw[1:]
    try:
        result = json.loads(raw)
    except json.JSONDecodeError as exc:
        snippet = original_raw[:120]
        if len(original_raw) > 120:
            snippet += "..."
        raise ConfigLoadError(
            "config string is not valid JSON: "
            f"{exc} (raw_len={len(original_raw)}, raw_prefix={snippet!r})"
        ) from exc

    if not isinstance(result, dict):
        raise ConfigLoadError(
            f"config string must be a JSON object, got {type(result).__name__}"
        )
    return result


@dataclass(frozen=True)
class SimulationConfig:
    """Validated settings for a simulated broker and environment."""

    currency: str
    balances: dict[str, Decimal] = field(default_factory=dict)
    notional_assets: frozenset[str] = frozenset()
    asset_pairs: tuple[AssetPair, ...] = ()
    bar_duration: timedelta = timedelta(minutes=1)
    refresh_interval: timedelta = timedelta(seconds=30)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SimulationConfig":
        """Validate *raw* and build a config.

        Raises:
            ConfigLoadError: on any missing or malformed field.
        """
        currency = raw.get("currency")
        if not isinstance(currency, str) or not currency.strip():
            raise ConfigLoadError("config field 'currency' must be a non-empty string")
        currency = currency.strip()

        balances_raw = raw.get("balances", {})
        if not isinstance(balances_raw, dict):
            raise ConfigLoadError("config field 'balances' must be an object")
        balances: dict[str, Decimal] = {}
        for asset, value in balances_raw.items():
            try:
                balances[str(asset)] = Decimal(str(value))
            except InvalidOperation as exc:
                raise ConfigLoadError(f"invalid balance for {asset!r}: {value!r}") from exc

        notional_raw = raw.get("notional_assets", [])
        if not isinstance(notional_raw, list):
            raise ConfigLoadError("config field 'notional_assets' must be a list")
        notional_assets = frozenset([currency, *(str(a) for a in notional_raw)])

        pairs_raw = raw.get("asset_pairs", [])
        if not isinstance(pairs_raw, list):
            raise ConfigLoadError("config field 'asset_pairs' must be a list")
        try:
            asset_pairs = tuple(AssetPair.parse(str(p)) for p in pairs_raw)
        except InvalidAssetPairError as exc:
            raise ConfigLoadError(str(exc)) from exc

        return cls(
            currency=currency,
            balances=balances,
            notional_assets=notional_assets,
            asset_pairs=asset_pairs,
            bar_duration=_positive_seconds(raw, "bar_duration_seconds", 60),
            refresh_interval=_positive_seconds(raw, "refresh_interval_seconds", 30),
        )

    def build_broker(self) -> SimulatedBroker:
        """Return a :class:`SimulatedBroker` funded with :attr:`balances`."""
        return SimulatedBroker(
            self.currency,
            self.notional_assets,
            {self.currency: Decimal("0"), **self.balances},
        )


def _positive_seconds(raw: dict[str, Any], key: str, default: float) -> timedelta:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigLoadError(f"config field {key!r} must be a positive number, got {value!r}")
    return timedelta(seconds=value)


def load_simulation_config(
    *,
    config_path: Union[str, Path, None] = None,
    config_json: Union[str, None] = None,
) -> SimulationConfig:
    """Load a :class:`SimulationConfig` from a file path or a JSON string.

    Exactly one of ``config_path`` and ``config_json`` must be provided.

    Raises:
        ConfigLoadError: If both or neither are provided, or loading fails.
    """
    if config_path is not None and config_json is not None:
        raise ConfigLoadError(
            "Provide only one of config_path or config_json, not both."
        )

    if config_path is not None:
        return SimulationConfig.from_dict(load_json_from_path(config_path))

    if config_json is not None:
        return SimulationConfig.from_dict(load_json_from_string(config_json))

    raise ConfigLoadError("Provide one of config_path or config_json.")
