"""Translation between Alpaca REST payloads and irontrade value types."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..api.common import (
    Account,
    Amount,
    Bar,
    Notional,
    OpenPosition,
    Order,
    OrderStatus,
    OrderType,
    Quantity,
)
from ..api.request import OrderRequest
from ..errors import LiveApiError
from ..simulated.data import parse_timestamp

_STATUS_MAP = {
    "new": OrderStatus.NEW,
    "partially_filled": OrderStatus.PARTIALLY_FILLED,
    "filled": OrderStatus.FILLED,
    "expired": OrderStatus.EXPIRED,
}

_TYPE_MAP = {
    "market": OrderType.MARKET,
    "limit": OrderType.LIMIT,
}


def _decimal(value: Any, field_name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise LiveApiError(f"invalid decimal in field {field_name!r}: {value!r}") from exc


def _optional_decimal(value: Any, field_name: str) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return _decimal(value, field_name)


def order_request_to_payload(req: OrderRequest) -> dict[str, Any]:
    """Build the ``POST /v2/orders`` body for *req*."""
    payload: dict[str, Any] = {
        "symbol": str(req.asset_pair),
        "side": req.side,
        "type": req.order_type,
        "time_in_force": "gtc",
    }
    if isinstance(req.amount, Quantity):
        payload["qty"] = str(req.amount.quantity)
    else:
        payload["notional"] = str(req.amount.notional)
    if req.limit_price is not None:
        payload["limit_price"] = str(req.limit_price)
    return payload


def order_from_payload(payload: dict[str, Any]) -> Order:
    """Map an Alpaca order object onto :class:`Order`.

    Statuses without an irontrade counterpart map to ``UNIMPLEMENTED``.
    """
    amount: Amount
    if payload.get("notional") not in (None, ""):
        amount = Notional(_decimal(payload["notional"], "notional"))
    else:
        amount = Quantity(_decimal(payload.get("qty"), "qty"))

    return Order(
        order_id=str(payload.get("id", "")),
        asset_symbol=str(payload.get("symbol", "")),
        amount=amount,
        limit_price=_optional_decimal(payload.get("limit_price"), "limit_price"),
        filled_quantity=_optional_decimal(payload.get("filled_qty"), "filled_qty") or Decimal("0"),
        average_fill_price=_optional_decimal(payload.get("filled_avg_price"), "filled_avg_price"),
        status=_STATUS_MAP.get(str(payload.get("status", "")), OrderStatus.UNIMPLEMENTED),
        order_type=_TYPE_MAP.get(str(payload.get("type", "")), OrderType.MARKET),
        side=str(payload.get("side", "")),
    )


def position_from_payload(payload: dict[str, Any]) -> OpenPosition:
    return OpenPosition(
        asset_symbol=str(payload.get("symbol", "")),
        quantity=_decimal(payload.get("qty"), "qty"),
        average_entry_price=_optional_decimal(payload.get("avg_entry_price"), "avg_entry_price"),
        market_value=_optional_decimal(payload.get("market_value"), "market_value"),
    )


def account_from_payload(account: dict[str, Any], positions: list[dict[str, Any]]) -> Account:
    """Combine ``GET /v2/account`` and ``GET /v2/positions`` into :class:`Account`."""
    open_positions = {}
    for item in positions:
        position = position_from_payload(item)
        open_positions[position.asset_symbol] = position
    return Account(
        currency=str(account.get("currency", "")),
        cash=_decimal(account.get("cash", "0"), "cash"),
        buying_power=_decimal(account.get("buying_power", "0"), "buying_power"),
        open_positions=open_positions,
    )


def bar_from_payload(payload: dict[str, Any]) -> Bar:
    """Map a market-data bar (``o``/``h``/``l``/``c``/``t`` keys) onto :class:`Bar`."""
    try:
        date_time = parse_timestamp(str(payload["t"]))
    except (KeyError, ValueError) as exc:
        raise LiveApiError(f"invalid bar timestamp: {payload.get('t')!r}") from exc
    return Bar(
        open=_decimal(payload.get("o"), "o"),
        high=_decimal(payload.get("h"), "h"),
        low=_decimal(payload.get("l"), "l"),
        close=_decimal(payload.get("c"), "c"),
        date_time=date_time,
    )
