"""Exception taxonomy shared by the simulated and live backends.

Every failure surfaced to callers derives from :class:`IronTradeError`.  The
concrete classes also inherit a builtin (``ValueError``, ``LookupError``,
``RuntimeError``) so callers that only care about the broad category can
catch that instead.
"""

from __future__ import annotations

from typing import Any, Optional


class IronTradeError(Exception):
    """Base class for all irontrade errors."""


class InvalidAssetPairError(IronTradeError, ValueError):
    """Raised when an ``"QUANTITY/NOTIONAL"`` string cannot be parsed."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(f"invalid asset pair {raw!r}; expected QUANTITY/NOTIONAL")


class MissingCurrencyNotionalAssetError(IronTradeError, ValueError):
    """Raised when a broker currency is not one of its notional assets."""

    def __init__(self, currency: str) -> None:
        self.currency = currency
        super().__init__(f"Missing currency notional asset {currency}")


class InvalidNotionalAssetError(IronTradeError, ValueError):
    """Raised when a pair's notional leg is not accepted by the broker."""

    def __init__(self, asset: str) -> None:
        self.asset = asset
        super().__init__(f"{asset} is not a valid notional asset")


class NoNotionalPerUnitError(IronTradeError, ValueError):
    """Raised when no price has been set for a pair yet."""

    def __init__(self, asset_pair: Any) -> None:
        self.asset_pair = asset_pair
        super().__init__(f"{asset_pair} does not have notional per unit")


class InsufficientBuyingPowerError(IronTradeError, ValueError):
    """Raised when an order would reserve more than the available buying power."""

    def __init__(self, asset: str) -> None:
        self.asset = asset
        super().__init__(f"Not enough {asset} buying power")


class OrderNotFoundError(IronTradeError, LookupError):
    """Raised when an order id is unknown to the backend."""

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Order with id {order_id} doesn't exist")


class NotInitializedError(IronTradeError, RuntimeError):
    """Raised when an environment is used before ``init()``."""

    def __init__(self) -> None:
        super().__init__("Environment has not been initialized")


class AlreadyInitializedError(IronTradeError, RuntimeError):
    """Raised when ``init()`` is called a second time."""

    def __init__(self) -> None:
        super().__init__("Environment has already been initialized")


class BarDataError(IronTradeError, ValueError):
    """Raised when bar data cannot be loaded or parsed."""


class LiveApiError(IronTradeError):
    """Raised when the live brokerage API answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)
