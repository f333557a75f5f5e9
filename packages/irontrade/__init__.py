"""irontrade: place and track orders against a live or simulated venue."""

from .api.client import Client, Environment, Market
from .api.common import (
    Account,
    AssetPair,
    Bar,
    Notional,
    OpenPosition,
    Order,
    OrderSide,
    OrderStatus,
    OrderType,
    Quantity,
)
from .api.request import OrderRequest
from .errors import (
    AlreadyInitializedError,
    BarDataError,
    InsufficientBuyingPowerError,
    InvalidAssetPairError,
    InvalidNotionalAssetError,
    IronTradeError,
    LiveApiError,
    MissingCurrencyNotionalAssetError,
    NoNotionalPerUnitError,
    NotInitializedError,
    OrderNotFoundError,
)
from .simulated.broker import SimulatedBroker, SimulatedBrokerBuilder
from .simulated.client import SimulatedClient
from .simulated.context import SimulatedContext
from .simulated.environment import SimulatedEnvironment, SimulatedEnvironmentBuilder

__all__ = [
    "Client",
    "Environment",
    "Market",
    "Account",
    "AssetPair",
    "Bar",
    "Notional",
    "OpenPosition",
    "Order",
    "OrderSide",
    "OrderStatus",
    "OrderType",
    "Quantity",
    "OrderRequest",
    "AlreadyInitializedError",
    "BarDataError",
    "InsufficientBuyingPowerError",
    "InvalidAssetPairError",
    "InvalidNotionalAssetError",
    "IronTradeError",
    "LiveApiError",
    "MissingCurrencyNotionalAssetError",
    "NoNotionalPerUnitError",
    "NotInitializedError",
    "OrderNotFoundError",
    "SimulatedBroker",
    "SimulatedBrokerBuilder",
    "SimulatedClient",
    "SimulatedContext",
    "SimulatedEnvironment",
    "SimulatedEnvironmentBuilder",
]
